import json
import logging
import sys

from django.core.management.base import BaseCommand

from config.env import SECRET_NAMES, secret_source
from src.attestations.config import build_attestation_config
from src.attestations.gateway import ChainGateway
from src.attestations.signers import describe_signer
from src.core.exceptions import ConfigurationError

LOG = logging.getLogger(__name__)


def _mask(val: str | None) -> str:
    if not val:
        return "None"
    n = len(val)
    if n <= 4:
        return "*" * n
    return val[:2] + "*" * (n - 4) + val[-2:]


class Command(BaseCommand):
    help = "Check the attestation engine configuration (exits non-zero on problems)."

    def add_arguments(self, parser):
        parser.add_argument("--skip-rpc", action="store_true", help="Do not contact the RPC endpoint.")
        parser.add_argument("--json", action="store_true", help="Print JSON report.")

    def handle(self, *args, **opts):
        as_json: bool = opts["json"]
        problems: list[str] = []
        report: dict = {"ok": False}

        try:
            config = build_attestation_config()
        except ConfigurationError as e:
            report["error"] = f"{e.code}: {e.message}"
            if e.errors:
                report["details"] = e.errors
            self._emit(report, as_json)
            sys.exit(1)

        chain = config.chain
        report["chain"] = {
            "preset": chain.preset,
            "chainId": chain.chain_id,
            "rpc": chain.rpc_url,
            "contracts": chain.contract_addresses,
        }
        report["thirdwebClientId"] = _mask(config.client_id)
        report["secrets"] = {name: secret_source(name) for name in SECRET_NAMES}
        if not config.client_id:
            # foreign-chain did:pkh requests fail with THIRDWEB_CLIENT_ID_MISSING
            problems.append("THIRDWEB_CLIENT_ID is not set; foreign-chain did:pkh verification is unavailable")

        signer = describe_signer(config.signer, config.http_timeout)
        report["signer"] = signer
        if signer["type"] == "Error":
            problems.append(signer["address"])

        if not opts["skip_rpc"]:
            rpc: dict = {"connected": False}
            try:
                gateway = ChainGateway.from_rpc_url(chain.rpc_url, timeout=config.rpc_timeout)
                rpc["connected"] = gateway.is_connected()
                if rpc["connected"]:
                    rpc["latestBlock"] = gateway.block_number()
                    rpc["resolverDeployed"] = bool(gateway.get_code(chain.resolver))
                    if not rpc["resolverDeployed"]:
                        problems.append(f"No contract code at resolver {chain.resolver}")
                else:
                    problems.append(f"RPC endpoint {chain.rpc_url} is not reachable")
            except Exception as e:
                LOG.warning("RPC check failed: %s", e)
                rpc["error"] = str(e)
                problems.append(f"RPC check failed: {e}")
            report["rpc"] = rpc

        report["problems"] = problems
        report["ok"] = not problems
        self._emit(report, as_json)
        sys.exit(0 if report["ok"] else 1)

    def _emit(self, report: dict, as_json: bool) -> None:
        if as_json:
            print(json.dumps(report, ensure_ascii=False, indent=2))
            return

        if "error" in report:
            self.stderr.write(self.style.ERROR(f"Configuration error: {report['error']}"))
            if report.get("details"):
                self.stderr.write(f"  {report['details']}")
            return

        chain = report["chain"]
        self.stdout.write(
            self.style.NOTICE(f"Chain: preset={chain['preset']} chainId={chain['chainId']} rpc={chain['rpc']}")
        )
        for name, address in chain["contracts"].items():
            self.stdout.write(f"  {name:>10}  {address}")
        self.stdout.write(f"Thirdweb client id: {report['thirdwebClientId']}")
        for name, source in report["secrets"].items():
            self.stdout.write(f"  {name}: {source}")
        self.stdout.write(f"Signer: {report['signer']['type']} {report['signer']['address']}")
        if "rpc" in report:
            self.stdout.write(f"RPC: {report['rpc']}")
        for problem in report["problems"]:
            self.stderr.write(self.style.ERROR(problem))
        if report["ok"]:
            self.stdout.write(self.style.SUCCESS("Attestation configuration OK"))

from ninja_extra import api_controller, route
from ninja_extra.throttling import DynamicRateThrottle

from src.attestations.config import load_attestation_config
from src.attestations.gateway import ChainGateway
from src.attestations.signers import describe_signer
from src.core.apis import BaseAPIController
from src.core.exceptions import NotFoundError


@api_controller("/diagnostics", tags=["Diagnostics"], auth=None, throttle=[DynamicRateThrottle(scope="sustained")])
class AttestationHealthController(BaseAPIController):
    @route.get("/attestation-config")
    def attestation_config(self, request):
        """
        Debug-only view of the active chain, RPC reachability, resolver deployment
        and signer identity. Answers 404 unless ATTESTATION_DEBUG is on.
        """
        config = load_attestation_config()
        if not config.debug:
            raise NotFoundError(message="Not found")

        chain = config.chain
        rpc = {"url": chain.rpc_url, "connected": False, "latestBlock": None, "resolverDeployed": None}
        try:
            gateway = ChainGateway.from_rpc_url(chain.rpc_url, timeout=config.rpc_timeout)
            rpc["connected"] = gateway.is_connected()
            if rpc["connected"]:
                rpc["latestBlock"] = gateway.block_number()
                rpc["resolverDeployed"] = bool(gateway.get_code(chain.resolver))
        except Exception as e:
            rpc["error"] = str(e)

        return self.create_response(
            ok=True,
            status="ready",
            body={
                "chain": {
                    "preset": chain.preset,
                    "name": chain.label,
                    "chainId": chain.chain_id,
                    "contracts": chain.contract_addresses,
                },
                "rpc": rpc,
                "signer": describe_signer(config.signer, config.http_timeout),
                "dnsTxtPrefix": config.dns_txt_prefix,
                "minConfirmations": config.min_confirmations,
            },
        )

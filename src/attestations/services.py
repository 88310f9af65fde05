from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from src.attestations.attestation_schemas import get_schema
from src.attestations.chains import same_address
from src.attestations.config import AttestationConfig
from src.attestations.gateway import ChainGateway
from src.attestations.resolver import ResolverClient
from src.attestations.selectors import AttestationStatus, attestation_status, current_controller_or_none
from src.attestations.signers import load_signer
from src.attestations.verification import contract, transfer, web
from src.attestations.verification.results import Failed, VerificationResult
from src.core.exceptions import InvalidRequestError, NotFoundError
from src.dids.utils.did_methods import PKH, WEB, ParsedDid, UnsupportedDidError, did_hash, parse_did, parse_did_pkh

logger = logging.getLogger(__name__)

GatewayFactory = Callable[..., ChainGateway]
SignerLoader = Callable[..., Any]

FAST_PATH = "fast-path"
WRITTEN = "written"
VERIFICATION_FAILED = "verification-failed"
WRITE_FAILED = "write-failed"


@dataclass(frozen=True)
class RequestContext:
    did: str
    normalized_did: str
    did_hash: str
    connected_address: str
    method: str


@dataclass
class WriteOutcome:
    schema: str
    tx_hash: str | None = None
    error: str | None = None
    controller_after: str | None = None

    @property
    def ok(self) -> bool:
        return self.tx_hash is not None and self.error is None


@dataclass
class WriteReport:
    outcomes: list[WriteOutcome] = field(default_factory=list)

    @property
    def tx_hashes(self) -> list[str]:
        return [o.tx_hash for o in self.outcomes if o.ok]

    @property
    def written(self) -> list[str]:
        return [o.schema for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[WriteOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def errors(self) -> list[dict[str, str]]:
        out = []
        for o in self.failed:
            entry = {"schema": o.schema, "error": o.error or "unknown error"}
            if o.tx_hash:
                entry["txHash"] = o.tx_hash
            out.append(entry)
        return out

    @property
    def all_failed(self) -> bool:
        return bool(self.outcomes) and not self.written

    @property
    def current_controller_after(self) -> str | None:
        for o in reversed(self.outcomes):
            if o.controller_after:
                return o.controller_after
        return None


@dataclass
class AttestOutcome:
    kind: str
    context: RequestContext
    status: AttestationStatus
    verification: VerificationResult | None = None
    report: WriteReport | None = None
    signer: Any = None

    @property
    def final_status(self) -> AttestationStatus:
        """Attestation status after writes: written schemas move to present."""
        if self.report is None:
            return self.status
        written = set(self.report.written)
        return AttestationStatus(
            present=self.status.present + tuple(s for s in self.status.missing if s in written),
            missing=tuple(s for s in self.status.missing if s not in written),
        )


def route_did(did: str) -> ParsedDid:
    """Reject unsupported methods and malformed did:pkh before any chain access."""
    try:
        parsed = parse_did(did)
    except UnsupportedDidError as exc:
        raise InvalidRequestError(
            message="Unsupported DID type",
            code="UNSUPPORTED_DID",
            errors="Only did:web: and did:pkh: are supported",
        ) from exc

    if parsed.method == PKH:
        try:
            parse_did_pkh(parsed.raw)
        except UnsupportedDidError as exc:
            raise InvalidRequestError(message="Invalid DID format", code="INVALID_DID", errors=str(exc)) from exc
    return parsed


def build_context(did: str, connected_address: str) -> RequestContext:
    parsed = route_did(did)
    return RequestContext(
        did=parsed.raw,
        normalized_did=parsed.normalized,
        did_hash=did_hash(parsed.raw),
        connected_address=connected_address,
        method=parsed.method,
    )


def resolver_for(config: AttestationConfig, *, gateway_factory: GatewayFactory | None = None) -> ResolverClient | None:
    """Resolver on the active chain, or None when it cannot be reached (reads then report missing)."""
    try:
        gateway = (gateway_factory or ChainGateway.from_rpc_url)(config.chain.rpc_url, timeout=config.rpc_timeout)
        return ResolverClient(gateway, config.chain.resolver)
    except Exception as exc:
        logger.warning("Resolver client unavailable on %s: %s", config.chain.label, exc)
        return None


def verify_ownership(ctx: RequestContext, *, config: AttestationConfig, tx_hash: str | None = None,
                     gateway_factory: GatewayFactory | None = None,
                     txt_lookup=None, fetch=None) -> VerificationResult:
    if ctx.method == WEB:
        return web.verify_did_web(ctx.did, ctx.connected_address, config=config, txt_lookup=txt_lookup, fetch=fetch)
    if ctx.method == PKH:
        return contract.verify_did_pkh(ctx.did, ctx.connected_address, config=config, tx_hash=tx_hash, gateway_factory=gateway_factory)
    return Failed("Unsupported DID type", "Only did:web: and did:pkh: are supported")


def write_attestations(*, resolver: ResolverClient, signer, did_hash: str, controller: str, schemas: list[str] | tuple[str, ...],
                       chain_id: int, receipt_timeout: float) -> WriteReport:
    """
    One transaction per schema, strictly in order. A failure is recorded against
    its schema and never stops the remaining writes.
    """
    report = WriteReport()
    gateway = resolver.gateway
    for schema_uid in schemas:
        outcome = WriteOutcome(schema=schema_uid)
        report.outcomes.append(outcome)
        try:
            schema = get_schema(schema_uid)
            call = resolver.prepare_write(schema, did_hash, controller)
            # set before the receipt wait, so a timed-out write still reports its hash
            outcome.tx_hash = signer.send(gateway, resolver, call, chain_id=chain_id)
            logger.info("Attestation %s submitted: %s", schema_uid, outcome.tx_hash)
            receipt = gateway.wait_for_receipt(outcome.tx_hash, timeout=receipt_timeout)
            if receipt.get("status") != 1:
                raise RuntimeError(f"Transaction {outcome.tx_hash} reverted")
        except Exception as exc:
            logger.warning("Attestation write failed for schema %s (tx %s): %s", schema_uid, outcome.tx_hash, exc)
            outcome.error = f"{type(exc).__name__}: {exc}"
            continue

        outcome.controller_after = current_controller_or_none(resolver, did_hash, schema_uid)
        if not same_address(outcome.controller_after, controller):
            logger.warning(
                "Read-back for %s returned %s, expected %s", schema_uid, outcome.controller_after, controller
            )

    logger.info("Wrote %d/%d attestations", len(report.written), len(report.outcomes))
    return report


def verify_and_attest(*, did: str, connected_address: str, required_schemas: list[str], config: AttestationConfig,
                      tx_hash: str | None = None, gateway_factory: GatewayFactory | None = None,
                      signer_loader: SignerLoader | None = None,
                      txt_lookup=None, fetch=None) -> AttestOutcome:
    ctx = build_context(did, connected_address)

    resolver = resolver_for(config, gateway_factory=gateway_factory)
    status = attestation_status(
        resolver, did_hash=ctx.did_hash, connected_address=connected_address, required_schemas=required_schemas
    )
    if status.all_present:
        logger.info("All attestations already exist for %s", ctx.did)
        return AttestOutcome(kind=FAST_PATH, context=ctx, status=status)

    verification = verify_ownership(
        ctx, config=config, tx_hash=tx_hash, gateway_factory=gateway_factory, txt_lookup=txt_lookup, fetch=fetch
    )
    if not verification.ok:
        logger.info("Ownership verification failed for %s: %s", ctx.did, verification.reason)
        return AttestOutcome(kind=VERIFICATION_FAILED, context=ctx, status=status, verification=verification)

    # raises ConfigurationError when no signer can be assembled
    signer = (signer_loader or load_signer)(config.signer, config.http_timeout)
    if resolver is None:
        resolver = ResolverClient(
            (gateway_factory or ChainGateway.from_rpc_url)(config.chain.rpc_url, timeout=config.rpc_timeout),
            config.chain.resolver,
        )

    report = write_attestations(
        resolver=resolver,
        signer=signer,
        did_hash=ctx.did_hash,
        controller=connected_address,
        schemas=status.missing,
        chain_id=config.chain.chain_id,
        receipt_timeout=config.receipt_timeout,
    )
    return AttestOutcome(
        kind=WRITE_FAILED if report.all_failed else WRITTEN,
        context=ctx,
        status=status,
        verification=verification,
        report=report,
        signer=signer,
    )


def discover_wallet(did: str, *, config: AttestationConfig, gateway_factory: GatewayFactory | None = None) -> dict:
    try:
        pkh = parse_did_pkh(did)
    except UnsupportedDidError as exc:
        raise InvalidRequestError(message="Invalid did:pkh format", code="INVALID_DID", errors=str(exc)) from exc

    try:
        gateway = contract.gateway_for(pkh, config=config, gateway_factory=gateway_factory)
    except ValueError as exc:
        raise InvalidRequestError(message="No RPC provider for chain", code="CHAIN_UNSUPPORTED", errors=str(exc)) from exc

    evidence = contract.discover_controlling_wallet(
        contract.OwnershipContext(gateway=gateway, contract_address=pkh.address)
    )
    if evidence is None:
        raise NotFoundError(
            message=(
                "Could not discover controlling wallet. Contract may not have standard ownership functions "
                "(owner, admin, getOwner, or EIP-1967 proxy)."
            ),
            code="CONTROLLER_NOT_FOUND",
        )
    return {
        "controllingWallet": evidence.controller,
        "source": evidence.source,
        "chainId": pkh.chain_id,
        "contractAddress": pkh.address,
    }


def transfer_instructions(did: str, connected_address: str, *, purpose: str = transfer.SHARED_CONTROL) -> dict:
    """What the controlling wallet must send to `connected_address` to prove control of a did:pkh."""
    try:
        pkh = parse_did_pkh(did)
    except UnsupportedDidError as exc:
        raise InvalidRequestError(message="Invalid did:pkh format", code="INVALID_DID", errors=str(exc)) from exc
    if purpose not in transfer.PROOF_PURPOSES:
        raise InvalidRequestError(
            message="Unknown proof purpose",
            code="PROOF_PURPOSE_INVALID",
            errors=f"proofPurpose must be one of {list(transfer.PROOF_PURPOSES)}",
        )

    chain_id = pkh.chain_id
    try:
        amount = transfer.expected_amount_for(pkh.did, connected_address, chain_id, purpose)
    except transfer.UnsupportedTransferChainError as exc:
        raise InvalidRequestError(message="Unsupported chain for transfer proof", code="CHAIN_UNSUPPORTED", errors=str(exc)) from exc

    return {
        "did": pkh.did,
        "chainId": chain_id,
        "recipient": connected_address,
        "proofPurpose": purpose,
        "amount": transfer.format_transfer_amount(amount, chain_id),
        "recipientExplorerUrl": transfer.explorer_address_url(chain_id, connected_address),
        "contractExplorerUrl": transfer.explorer_address_url(chain_id, pkh.address),
        "proofTemplate": transfer.build_proof(chain_id, "<txHash>", purpose),
    }

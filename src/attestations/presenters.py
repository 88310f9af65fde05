from __future__ import annotations

from src.attestations.config import AttestationConfig
from src.attestations.services import AttestOutcome, RequestContext


def elapsed_ms(started: float, now: float) -> str:
    return f"{int(round((now - started) * 1000))}ms"


def debug_payload(ctx: RequestContext, config: AttestationConfig, *, signer=None, report=None) -> dict:
    chain = config.chain
    payload = {
        "did": ctx.did,
        "normalizedDid": ctx.normalized_did,
        "didHash": ctx.did_hash,
        "connectedAddress": ctx.connected_address,
        "activeChain": chain.label,
        "chainId": chain.chain_id,
        "rpc": chain.rpc_url,
        "contractAddresses": chain.contract_addresses,
    }
    if signer is not None:
        payload["issuerAddress"] = signer.address
        payload["issuerType"] = signer.kind
    if report is not None:
        payload["currentOwnerAfter"] = report.current_controller_after
    return payload


def fast_path_body(outcome: AttestOutcome) -> dict:
    return {
        "message": "All attestations already exist",
        "attestations": outcome.status.as_dict(),
    }


def written_body(outcome: AttestOutcome) -> dict:
    report = outcome.report
    body = {
        "message": "DID ownership verified and attestations written",
        "method": outcome.verification.method,
        "attestations": outcome.final_status.as_dict(),
        "txHashes": report.tx_hashes,
    }
    if report.failed:
        body["warnings"] = report.errors
    return body


def verification_failed_extra(outcome: AttestOutcome) -> dict:
    extra = {"attestations": outcome.status.as_dict()}
    if outcome.verification.method:
        extra["method"] = outcome.verification.method
    return extra


def write_failed_extra(outcome: AttestOutcome) -> dict:
    return {"attestations": outcome.status.as_dict()}

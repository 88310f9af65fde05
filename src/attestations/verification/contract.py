"""
did:pkh verification.

Ownership strategies share one signature, `(OwnershipContext) -> OwnershipEvidence | None`,
and are tried in STRATEGIES order. Iteration is lazy so that a caller that
matches on `owner()` never triggers the proxy slot read.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Optional

from web3 import Web3

from src.attestations.chains import is_zero_address, rpc_url_for, same_address
from src.attestations.gateway import ChainGateway
from src.attestations.verification.results import (
    CONTRACT,
    MINTING_WALLET,
    Failed,
    OwnershipEvidence,
    Verified,
    VerificationResult,
)
from src.attestations.verification.transfer import verify_transfer
from src.dids.utils.did_methods import PkhDid, UnsupportedDidError, parse_did_pkh

logger = logging.getLogger(__name__)

EIP1967_ADMIN_SLOT = "0xb53127684a568b3173ae13b9f8a6016e243e63b6e8ee1178d6a717850b5d6103"
EIP1967_SOURCE = "eip1967-admin-slot"


@dataclass(frozen=True)
class OwnershipContext:
    gateway: ChainGateway
    contract_address: str


Strategy = Callable[[OwnershipContext], Optional[OwnershipEvidence]]
GatewayFactory = Callable[..., ChainGateway]


def _call_getter(ctx: OwnershipContext, function_name: str) -> OwnershipEvidence | None:
    try:
        controller = ctx.gateway.call_address_getter(ctx.contract_address, function_name)
    except Exception as exc:
        logger.debug("%s() not supported by %s: %s", function_name, ctx.contract_address, exc)
        return None
    if is_zero_address(controller):
        return None
    return OwnershipEvidence(source=f"{function_name}()", controller=controller)


def owner_call(ctx: OwnershipContext) -> OwnershipEvidence | None:
    return _call_getter(ctx, "owner")


def admin_call(ctx: OwnershipContext) -> OwnershipEvidence | None:
    return _call_getter(ctx, "admin")


def get_owner_call(ctx: OwnershipContext) -> OwnershipEvidence | None:
    return _call_getter(ctx, "getOwner")


def proxy_admin_slot(ctx: OwnershipContext) -> OwnershipEvidence | None:
    try:
        if not ctx.gateway.get_code(ctx.contract_address):
            logger.debug("No bytecode at %s, skipping EIP-1967 slot", ctx.contract_address)
            return None
        word = ctx.gateway.get_storage_at(ctx.contract_address, EIP1967_ADMIN_SLOT)
    except Exception as exc:
        logger.debug("EIP-1967 slot read failed for %s: %s", ctx.contract_address, exc)
        return None
    # admin address lives in the low 20 bytes of the 32-byte word
    raw = bytes(word)[-20:]
    if len(raw) < 20 or not any(raw):
        return None
    return OwnershipEvidence(source=EIP1967_SOURCE, controller=Web3.to_checksum_address(raw))


STRATEGIES: tuple[Strategy, ...] = (owner_call, admin_call, get_owner_call, proxy_admin_slot)


def iter_ownership_evidence(ctx: OwnershipContext, strategies: tuple[Strategy, ...] = STRATEGIES) -> Iterator[OwnershipEvidence]:
    for strategy in strategies:
        evidence = strategy(ctx)
        if evidence is not None:
            yield evidence


def discover_controlling_wallet(ctx: OwnershipContext) -> OwnershipEvidence | None:
    return next(iter_ownership_evidence(ctx), None)


def gateway_for(pkh: PkhDid, *, config, gateway_factory: GatewayFactory | None = None) -> ChainGateway:
    """
    Raises ValueError for an unusable chain id and ConfigurationError when the
    chain needs an RPC client id that is not configured.
    """
    rpc_url = rpc_url_for(pkh.chain_id, active=config.chain, client_id=config.client_id)
    return (gateway_factory or ChainGateway.from_rpc_url)(rpc_url, timeout=config.rpc_timeout)


def _verify_with_gateway(pkh: PkhDid, caller: str, gateway: ChainGateway, *, config, tx_hash: str | None) -> VerificationResult:
    ctx = OwnershipContext(gateway=gateway, contract_address=pkh.address)

    controlling: OwnershipEvidence | None = None
    for evidence in iter_ownership_evidence(ctx):
        controlling = controlling or evidence
        if same_address(evidence.controller, caller):
            logger.info("%s controlled by caller via %s", pkh.did, evidence.source)
            return Verified(CONTRACT, evidence.as_dict())

    if controlling and same_address(caller, pkh.address):
        return Verified(
            MINTING_WALLET,
            {
                **controlling.as_dict(),
                "details": f"Connected address matches the DID contract address. Controlling wallet: {controlling.controller}",
            },
        )

    if tx_hash:
        if controlling is None:
            return Failed(
                "Could not discover controlling wallet",
                "Contract does not have standard ownership functions (owner, admin, getOwner) or EIP-1967 proxy admin slot",
            )
        return verify_transfer(
            gateway,
            did=pkh.did,
            controlling_wallet=controlling.controller,
            minting_wallet=caller,
            chain_id=pkh.chain_id,
            tx_hash=tx_hash,
            min_confirmations=config.min_confirmations,
        )

    found = controlling.controller if controlling else "not found"
    return Failed(
        "Contract ownership verification failed",
        f"Connected address {caller} is neither the contract owner/admin ({found}) nor the minting wallet "
        f"({pkh.address}). Connect the correct wallet or use the transfer verification method.",
        CONTRACT,
    )


def verify_did_pkh(did: str, caller: str, *, config, tx_hash: str | None = None,
                   gateway_factory: GatewayFactory | None = None) -> VerificationResult:
    try:
        pkh = parse_did_pkh(did)
    except UnsupportedDidError as exc:
        return Failed("Invalid DID format", str(exc))

    try:
        gateway = gateway_for(pkh, config=config, gateway_factory=gateway_factory)
    except ValueError as exc:
        return Failed("No RPC provider for chain", str(exc))

    try:
        return _verify_with_gateway(pkh, caller, gateway, config=config, tx_hash=tx_hash)
    except Exception as exc:
        logger.warning("Contract verification failed for %s: %s", pkh.did, exc)
        return Failed("Contract ownership verification failed", str(exc), CONTRACT)

"""
tx-encoded-value proofs.

The subject's controlling wallet sends a deterministic amount of the native
token to the counterparty. The amount carries no monetary meaning; it is a
marker that cannot be produced by an unrelated transfer:

    Amount = BASE(purpose, chain) + U256(keccak256(JCS(seed))) mod RANGE
    RANGE  = BASE // 10
    seed   = {domain, subjectDidHash, counterpartyIdHash, proofPurpose}
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from src.attestations.chains import same_address
from src.attestations.verification.results import TRANSFER, Failed, Verified, VerificationResult
from src.dids.proof_crypto_engine.canonical.jcs import dumps_bytes, keccak_hex
from src.dids.utils.caip10 import build_pkh_did

logger = logging.getLogger(__name__)

AMOUNT_DOMAIN = "OMATrust:Amount:v1"
PROOF_TYPE = "tx-encoded-value"

SHARED_CONTROL = "shared-control"
COMMERCIAL_TX = "commercial-tx"
PROOF_PURPOSES = (SHARED_CONTROL, COMMERCIAL_TX)


@dataclass(frozen=True)
class TransferChainConfig:
    decimals: int
    symbol: str
    block_time: float
    explorer: str
    base: dict[str, int]


_EVM_BASE = {SHARED_CONTROL: 10**14, COMMERCIAL_TX: 10**12}
_OMA_BASE = {SHARED_CONTROL: 10**16, COMMERCIAL_TX: 10**14}

CHAIN_CONFIGS: dict[int, TransferChainConfig] = {
    1: TransferChainConfig(18, "ETH", 12, "https://etherscan.io", _EVM_BASE),
    11155111: TransferChainConfig(18, "ETH", 12, "https://sepolia.etherscan.io", _EVM_BASE),
    137: TransferChainConfig(18, "POL", 2, "https://polygonscan.com", _EVM_BASE),
    8453: TransferChainConfig(18, "ETH", 2, "https://basescan.org", _EVM_BASE),
    10: TransferChainConfig(18, "ETH", 2, "https://optimistic.etherscan.io", _EVM_BASE),
    42161: TransferChainConfig(18, "ETH", 0.25, "https://arbiscan.io", _EVM_BASE),
    6623: TransferChainConfig(18, "OMA", 3, "https://explorer.chain.oma3.org", _OMA_BASE),
    66238: TransferChainConfig(18, "OMA", 3, "https://explorer.testnet.chain.oma3.org", _OMA_BASE),
}


class UnsupportedTransferChainError(ValueError):
    pass


def get_chain_config(chain_id: int) -> TransferChainConfig:
    try:
        return CHAIN_CONFIGS[chain_id]
    except KeyError:
        supported = ", ".join(str(c) for c in CHAIN_CONFIGS)
        raise UnsupportedTransferChainError(
            f"tx-encoded-value not supported for chain {chain_id}. Supported chains: {supported}"
        ) from None


def is_chain_supported(chain_id: int) -> bool:
    return chain_id in CHAIN_CONFIGS


def chain_constants(chain_id: int, purpose: str) -> tuple[int, int]:
    if purpose not in PROOF_PURPOSES:
        raise ValueError(f"Unknown proof purpose {purpose!r}")
    base = get_chain_config(chain_id).base[purpose]
    return base, base // 10


def canonicalize_did(did: str) -> str:
    return did.strip().lower()


def compute_did_hash(did: str) -> str:
    return keccak_hex(canonicalize_did(did).encode("utf-8"))


def construct_seed(subject_did_hash: str, counterparty_did_hash: str, purpose: str) -> bytes:
    return dumps_bytes(
        {
            "domain": AMOUNT_DOMAIN,
            "subjectDidHash": subject_did_hash,
            "counterpartyIdHash": counterparty_did_hash,
            "proofPurpose": purpose,
        }
    )


def calculate_transfer_amount(subject_did: str, counterparty_did: str, chain_id: int, purpose: str = SHARED_CONTROL) -> int:
    base, range_ = chain_constants(chain_id, purpose)
    seed = construct_seed(compute_did_hash(subject_did), compute_did_hash(counterparty_did), purpose)
    return base + int(keccak_hex(seed), 16) % range_


def expected_amount_for(did: str, recipient: str, chain_id: int, purpose: str = SHARED_CONTROL) -> int:
    """Amount the controlling wallet must send to `recipient` to prove control of `did`."""
    return calculate_transfer_amount(did, build_pkh_did(chain_id, recipient), chain_id, purpose)


def format_units(amount: int, decimals: int) -> str:
    text = format(Decimal(amount).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0")
    if text.endswith("."):
        text += "0"
    return text if "." in text else text + ".0"


def format_transfer_amount(amount: int, chain_id: int) -> dict[str, str]:
    config = get_chain_config(chain_id)
    return {"formatted": format_units(amount, config.decimals), "symbol": config.symbol, "wei": str(amount)}


def explorer_tx_url(chain_id: int, tx_hash: str) -> str:
    return f"{get_chain_config(chain_id).explorer}/tx/{tx_hash}"


def explorer_address_url(chain_id: int, address: str) -> str:
    return f"{get_chain_config(chain_id).explorer}/address/{address}"


def build_proof(chain_id: int, tx_hash: str, purpose: str = SHARED_CONTROL) -> dict:
    return {
        "proofType": PROOF_TYPE,
        "proofPurpose": purpose,
        "proofObject": {"chainId": f"eip155:{chain_id}", "txHash": tx_hash},
        "version": 1,
    }


def verify_transfer(gateway, *, did: str, controlling_wallet: str, minting_wallet: str, chain_id: int,
                    tx_hash: str, min_confirmations: int = 1, purpose: str = SHARED_CONTROL) -> VerificationResult:
    """
    Check that `tx_hash` moved exactly the expected amount from the controlling
    wallet to the minting wallet and is buried at least `min_confirmations` deep.
    """
    try:
        expected = expected_amount_for(did, minting_wallet, chain_id, purpose)
    except UnsupportedTransferChainError as exc:
        return Failed("Unsupported chain for transfer proof", str(exc), TRANSFER)

    try:
        tx = gateway.get_transaction(tx_hash)
        if not tx:
            return Failed("Transaction not found", f"Transaction {tx_hash} not found on chain {chain_id}", TRANSFER)

        receipt = gateway.get_transaction_receipt(tx_hash)
        if not receipt or receipt.get("blockNumber") is None:
            return Failed(
                "Transaction not confirmed",
                "Transaction exists but is not yet confirmed. Please wait for confirmation.",
                TRANSFER,
            )
        if receipt.get("status") != 1:
            return Failed("Transaction reverted", f"Transaction {tx_hash} did not execute successfully", TRANSFER)

        confirmations = gateway.block_number() - int(receipt["blockNumber"]) + 1
    except Exception as exc:
        logger.warning("Transfer lookup failed for %s on chain %s: %s", tx_hash, chain_id, exc)
        return Failed("Transfer verification failed", str(exc), TRANSFER)

    if confirmations < min_confirmations:
        return Failed(
            "Transaction not confirmed",
            f"Transaction has {confirmations} confirmation(s), {min_confirmations} required",
            TRANSFER,
        )

    sender = tx.get("from")
    if not same_address(sender, controlling_wallet):
        return Failed(
            "Wrong sender",
            f"Transaction sender is {sender}, but expected controlling wallet {controlling_wallet}",
            TRANSFER,
        )

    recipient = tx.get("to")
    if not same_address(recipient, minting_wallet):
        return Failed(
            "Wrong recipient",
            f"Transaction recipient is {recipient}, but expected minting wallet {minting_wallet}",
            TRANSFER,
        )

    value = int(tx.get("value") or 0)
    if value != expected:
        return Failed(
            "Wrong amount",
            f"Transaction amount is {value} wei, but expected {expected} wei. The amount must be exact.",
            TRANSFER,
        )

    logger.info("Transfer proof %s verified for %s (%s confirmations)", tx_hash, did, confirmations)
    return Verified(
        TRANSFER,
        {
            "txHash": tx_hash,
            "from": sender,
            "to": recipient,
            "value": str(value),
            "confirmations": confirmations,
            "controllingWallet": controlling_wallet,
            "proof": build_proof(chain_id, tx_hash, purpose),
        },
    )

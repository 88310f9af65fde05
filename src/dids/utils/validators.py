import re

from src.core.exceptions import InvalidRequestError
from src.dids.utils.caip10 import is_evm_address

_TX_HASH_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")


def validate_did_field(did) -> str:
    if not did or not isinstance(did, str) or not did.strip():
        raise InvalidRequestError(message="DID is required", code="DID_REQUIRED")
    return did.strip()


def validate_connected_address(address) -> str:
    if not address or not isinstance(address, str):
        raise InvalidRequestError(message="Connected address is required", code="ADDRESS_REQUIRED")
    if not is_evm_address(address):
        raise InvalidRequestError(
            message="Invalid Ethereum address format",
            code="ADDRESS_INVALID",
            errors="Address must be a valid Ethereum address (0x followed by 40 hex characters)",
        )
    return address


def validate_tx_hash(tx_hash) -> str | None:
    if tx_hash is None or tx_hash == "":
        return None
    if not isinstance(tx_hash, str) or not _TX_HASH_RE.match(tx_hash):
        raise InvalidRequestError(
            message="Invalid transaction hash",
            code="TX_HASH_INVALID",
            errors="txHash must be 0x followed by 64 hex characters",
        )
    return tx_hash


def validate_required_schemas(schemas, default: tuple[str, ...]) -> list[str]:
    if schemas is None:
        return list(default)
    if not isinstance(schemas, list) or not all(isinstance(s, str) and s.strip() for s in schemas):
        raise InvalidRequestError(message="requiredSchemas must be a list of schema identifiers", code="SCHEMAS_INVALID")
    if not schemas:
        return list(default)
    seen: list[str] = []
    for s in schemas:
        if s.strip() not in seen:
            seen.append(s.strip())
    return seen

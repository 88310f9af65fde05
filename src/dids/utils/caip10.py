from __future__ import annotations

import re
from dataclasses import dataclass

EVM_NAMESPACE = "eip155"

_NAMESPACE_RE = re.compile(r"^[-a-z0-9]{3,8}$")
_REFERENCE_RE = re.compile(r"^[-_a-zA-Z0-9]{1,32}$")
_EVM_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


@dataclass(frozen=True)
class Caip10Account:
    namespace: str
    reference: str
    address: str

    @property
    def is_evm(self) -> bool:
        return self.namespace == EVM_NAMESPACE

    @property
    def chain_id(self) -> int | None:
        if not self.is_evm or not self.reference.isdigit():
            return None
        return int(self.reference)

    def normalized(self) -> "Caip10Account":
        return Caip10Account(self.namespace, self.reference, self.address.lower())

    def __str__(self) -> str:
        return f"{self.namespace}:{self.reference}:{self.address}"


def parse_caip10(value: str) -> Caip10Account | None:
    """
    Parse `namespace:reference:address`. Returns None on anything malformed,
    never raises. EVM accounts additionally need a 20-byte hex address.
    """
    if not isinstance(value, str):
        return None
    parts = value.strip().split(":")
    if len(parts) != 3:
        return None
    namespace, reference, address = parts
    if not _NAMESPACE_RE.match(namespace) or not _REFERENCE_RE.match(reference) or not address:
        return None
    if namespace == EVM_NAMESPACE and not _EVM_ADDRESS_RE.match(address):
        return None
    return Caip10Account(namespace, reference, address)


def is_evm_address(value: str) -> bool:
    return isinstance(value, str) and bool(_EVM_ADDRESS_RE.match(value))


def build_pkh_did(chain_id: int, address: str) -> str:
    return f"did:pkh:{EVM_NAMESPACE}:{chain_id}:{address.lower()}"

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

DNS = "dns"
DID_DOCUMENT = "did-document"
CONTRACT = "contract"
MINTING_WALLET = "minting-wallet"
TRANSFER = "transfer"


@dataclass(frozen=True)
class Verified:
    method: str
    evidence: dict[str, Any] = field(default_factory=dict)

    ok = True


@dataclass(frozen=True)
class Failed:
    reason: str
    details: str = ""
    method: str | None = None

    ok = False


VerificationResult = Union[Verified, Failed]


@dataclass(frozen=True)
class OwnershipEvidence:
    """A controller address discovered for a contract, and where it came from."""

    source: str
    controller: str

    def as_dict(self) -> dict[str, str]:
        return {"source": self.source, "controller": self.controller}

from typing import Any

from ninja import Schema


# Fields stay loosely typed; the validators in src.dids.utils.validators own the 400 messages.
class VerifyAndAttestIn(Schema):
    did: Any = None
    connectedAddress: Any = None
    requiredSchemas: Any = None
    txHash: Any = None


class DiscoverWalletIn(Schema):
    did: Any = None


class TransferInstructionsIn(Schema):
    did: Any = None
    connectedAddress: Any = None
    proofPurpose: str | None = None


class AttestationsOut(Schema):
    present: list[str]
    missing: list[str]


class VerifyAndAttestOut(Schema):
    ok: bool
    status: str
    message: str | None = None
    method: str | None = None
    attestations: AttestationsOut
    txHashes: list[str] | None = None
    warnings: list[dict] | None = None
    elapsed: str
    debug: dict | None = None

"""
Approved attestation schemas.

To approve a schema: add an AttestationSchema to APPROVED_SCHEMAS.
A redeployed schema keeps its predecessor UIDs in `approved_uids` so that
records written under the old UID still count as present.
"""
from __future__ import annotations

from dataclasses import dataclass, field

OWNERSHIP_BINDING = "ownership"
SCHEMA_KEYED_BINDING = "schema-keyed"


@dataclass(frozen=True)
class AttestationSchema:
    uid: str
    name: str
    binding: str
    subject_field: str = "subject"
    controller_field: str = "controller"
    approved_uids: tuple[str, ...] = field(default_factory=tuple)

    @property
    def read_uids(self) -> tuple[str, ...]:
        return (self.uid, *self.approved_uids)


OWNERSHIP = AttestationSchema(
    uid="oma3.ownership.v1",
    name="DID ownership",
    binding=OWNERSHIP_BINDING,
    subject_field="didHash",
    controller_field="controllerAddress",
)

KEY_BINDING = AttestationSchema(
    # redeployed on OMAchain testnet; the original UID is kept for existing attestations
    uid="0x807b38ce9aa23fdde4457de01db9c5e8d6ec7c8feebee242e52be70847b7b966",
    name="Key binding",
    binding=SCHEMA_KEYED_BINDING,
    subject_field="subject",
    controller_field="keyId",
    approved_uids=("0x290ce7f909a98f74d2356cf24102ac813555fa0bcd456f1bab17da2d92632e1d",),
)

APPROVED_SCHEMAS: tuple[AttestationSchema, ...] = (OWNERSHIP, KEY_BINDING)


class UnknownSchemaError(LookupError):
    pass


def get_schema(uid: str) -> AttestationSchema:
    """Look up by current or predecessor UID, case-insensitively."""
    wanted = (uid or "").strip().lower()
    for schema in APPROVED_SCHEMAS:
        if wanted in (u.lower() for u in schema.read_uids):
            return schema
    raise UnknownSchemaError(f"Schema {uid} is not an approved attestation schema")


def unique_schema_uids(uids: list[str]) -> list[str]:
    """
    Keep the first UID per resolved schema, so that a case variant or a
    predecessor UID does not produce a second write to the same record.
    Unknown UIDs are compared case-insensitively.
    """
    seen: set[str] = set()
    out: list[str] = []
    for uid in uids:
        try:
            key = get_schema(uid).uid
        except UnknownSchemaError:
            key = uid.strip().lower()
        if key not in seen:
            seen.add(key)
            out.append(uid)
    return out

from __future__ import annotations

import logging
from dataclasses import dataclass

from src.attestations.attestation_schemas import UnknownSchemaError, get_schema
from src.attestations.chains import is_zero_address, same_address

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AttestationStatus:
    present: tuple[str, ...]
    missing: tuple[str, ...]

    @property
    def all_present(self) -> bool:
        return not self.missing

    def as_dict(self) -> dict[str, list[str]]:
        return {"present": list(self.present), "missing": list(self.missing)}


def current_controller_or_none(resolver, did_hash: str, schema_uid: str, uid: str | None = None) -> str | None:
    """Best-effort read. Any failure (unknown schema, revert, RPC error) reads as absent."""
    try:
        schema = get_schema(schema_uid)
    except UnknownSchemaError:
        logger.info("Schema %s is not approved, treating as missing", schema_uid)
        return None
    try:
        controller = resolver.current_controller(did_hash, schema, uid)
    except Exception as exc:
        logger.warning("Resolver read failed for schema %s: %s", schema_uid, exc)
        return None
    return None if is_zero_address(controller) else controller


def schema_present(resolver, did_hash: str, schema_uid: str, connected_address: str) -> bool:
    try:
        uids = get_schema(schema_uid).read_uids
    except UnknownSchemaError:
        return False
    for uid in uids:
        controller = current_controller_or_none(resolver, did_hash, schema_uid, uid)
        if controller and same_address(controller, connected_address):
            return True
    return False


def attestation_status(resolver, *, did_hash: str, connected_address: str, required_schemas: list[str]) -> AttestationStatus:
    if resolver is None:
        return AttestationStatus(present=(), missing=tuple(required_schemas))

    present: list[str] = []
    missing: list[str] = []
    for schema_uid in required_schemas:
        if schema_present(resolver, did_hash, schema_uid, connected_address):
            present.append(schema_uid)
        else:
            missing.append(schema_uid)

    logger.info("Attestation status for %s: present=%s missing=%s", did_hash, present, missing)
    return AttestationStatus(present=tuple(present), missing=tuple(missing))

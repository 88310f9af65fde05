from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from eth_abi import encode as abi_encode
from web3 import Web3

from src.attestations.attestation_schemas import OWNERSHIP_BINDING, AttestationSchema
from src.attestations.gateway import ChainGateway

logger = logging.getLogger(__name__)

NEVER_EXPIRES = 0

RESOLVER_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "currentOwner",
        "stateMutability": "view",
        "inputs": [{"name": "didHash", "type": "bytes32"}],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "upsertDirect",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "didHash", "type": "bytes32"},
            {"name": "controllerAddress", "type": "bytes32"},
            {"name": "expiresAt", "type": "uint64"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "currentController",
        "stateMutability": "view",
        "inputs": [
            {"name": "didHash", "type": "bytes32"},
            {"name": "schemaUid", "type": "bytes32"},
        ],
        "outputs": [{"name": "", "type": "address"}],
    },
    {
        "type": "function",
        "name": "upsertController",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "didHash", "type": "bytes32"},
            {"name": "schemaUid", "type": "bytes32"},
            {"name": "controllerAddress", "type": "bytes32"},
            {"name": "data", "type": "bytes"},
            {"name": "expiresAt", "type": "uint64"},
        ],
        "outputs": [],
    },
]


def to_bytes32(value: str) -> bytes:
    raw = Web3.to_bytes(hexstr=value)
    if len(raw) > 32:
        raise ValueError(f"{value} does not fit in bytes32")
    return raw.rjust(32, b"\x00")


def address_to_bytes32(address: str) -> bytes:
    return to_bytes32(Web3.to_checksum_address(address))


def schema_uid_bytes(uid: str) -> bytes:
    if uid.startswith("0x") and len(uid) == 66:
        return to_bytes32(uid)
    return Web3.keccak(text=uid)


@dataclass(frozen=True)
class ResolverCall:
    """An encoded resolver write, ready for a signer."""

    schema: str
    function: str
    args: tuple
    to: str
    data: str
    fields: dict[str, str]

    def as_transaction(self) -> dict[str, Any]:
        return {"to": self.to, "data": self.data, "value": 0}


class ResolverClient:
    def __init__(self, gateway: ChainGateway, address: str) -> None:
        self.gateway = gateway
        self.address = Web3.to_checksum_address(address)
        self.contract = gateway.contract(self.address, RESOLVER_ABI)

    def current_controller(self, did_hash: str, schema: AttestationSchema, uid: str | None = None) -> str:
        """Read the controller stored for (didHash, schema). Errors propagate to the caller."""
        h = to_bytes32(did_hash)
        if schema.binding == OWNERSHIP_BINDING:
            return self.contract.functions.currentOwner(h).call()
        return self.contract.functions.currentController(h, schema_uid_bytes(uid or schema.uid)).call()

    @staticmethod
    def encode_fields(did_hash: str, controller: str) -> bytes:
        # schema-specific payload: (subject, controller) in field-mapping order
        return abi_encode(["bytes32", "address"], [to_bytes32(did_hash), Web3.to_checksum_address(controller)])

    def prepare_write(self, schema: AttestationSchema, did_hash: str, controller: str) -> ResolverCall:
        h = to_bytes32(did_hash)
        controller_word = address_to_bytes32(controller)
        if schema.binding == OWNERSHIP_BINDING:
            function, args = "upsertDirect", (h, controller_word, NEVER_EXPIRES)
        else:
            data = self.encode_fields(did_hash, controller)
            function, args = "upsertController", (h, schema_uid_bytes(schema.uid), controller_word, data, NEVER_EXPIRES)
        encoded = self.contract.encode_abi(function, args=list(args))
        fields = {schema.subject_field: did_hash, schema.controller_field: controller}
        return ResolverCall(schema=schema.uid, function=function, args=args, to=self.address, data=encoded, fields=fields)

    def build_transaction(self, call: ResolverCall, tx_options: dict[str, Any]) -> dict[str, Any]:
        fn = getattr(self.contract.functions, call.function)
        return fn(*call.args).build_transaction(tx_options)

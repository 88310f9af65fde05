import pytest
from web3 import Web3

from src.attestations.attestation_schemas import KEY_BINDING, OWNERSHIP
from src.attestations.gateway import ChainGateway
from src.attestations.resolver import ResolverClient, address_to_bytes32, schema_uid_bytes, to_bytes32
from src.attestations.tests.fakes import CALLER, RESOLVER
from src.dids.utils.did_methods import did_hash

DID_HASH = did_hash("did:web:example.com")


def selector(signature):
    return bytes(Web3.keccak(text=signature)[:4]).hex()


@pytest.fixture
def client():
    # encoding never touches the provider
    return ResolverClient(ChainGateway.from_rpc_url("http://rpc.test", timeout=1), RESOLVER.lower())


def test_bytes32_helpers():
    assert to_bytes32(DID_HASH) == bytes.fromhex(DID_HASH[2:])
    assert address_to_bytes32(CALLER) == b"\x00" * 12 + bytes.fromhex(CALLER[2:])
    assert schema_uid_bytes(KEY_BINDING.uid) == bytes.fromhex(KEY_BINDING.uid[2:])
    assert schema_uid_bytes(OWNERSHIP.uid) == bytes(Web3.keccak(text=OWNERSHIP.uid))
    with pytest.raises(ValueError):
        to_bytes32("0x" + "00" * 33)


def test_ownership_write_uses_upsert_direct(client):
    call = client.prepare_write(OWNERSHIP, DID_HASH, CALLER)
    assert call.function == "upsertDirect"
    assert call.to == Web3.to_checksum_address(RESOLVER)
    assert call.data[2:10] == selector("upsertDirect(bytes32,bytes32,uint64)")
    assert call.as_transaction() == {"to": call.to, "data": call.data, "value": 0}


def test_schema_keyed_write_uses_upsert_controller(client):
    call = client.prepare_write(KEY_BINDING, DID_HASH, CALLER)
    assert call.function == "upsertController"
    assert call.data[2:10] == selector("upsertController(bytes32,bytes32,bytes32,bytes,uint64)")
    assert call.fields == {KEY_BINDING.subject_field: DID_HASH, KEY_BINDING.controller_field: CALLER}

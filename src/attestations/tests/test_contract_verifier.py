import pytest

from src.attestations.chains import ZERO_ADDRESS
from src.attestations.tests.fakes import CALLER, CONTRACT, OTHER, FakeGateway, checksummed, make_config, upper_hex
from src.attestations.verification.contract import (
    EIP1967_SOURCE,
    OwnershipContext,
    discover_controlling_wallet,
    verify_did_pkh,
)
from src.attestations.verification.results import CONTRACT as CONTRACT_METHOD
from src.attestations.verification.results import MINTING_WALLET, TRANSFER
from src.attestations.verification.transfer import expected_amount_for
from src.core.exceptions import ConfigurationError

DID = f"did:pkh:eip155:66238:{CONTRACT}"
TX = "0x" + "ab" * 32


def slot_word(address):
    return b"\x00" * 12 + bytes.fromhex(address[2:])


def run(gateway, caller=CALLER, tx_hash=None, **config_kw):
    factory_calls = []

    def factory(rpc_url, *, timeout):
        factory_calls.append((rpc_url, timeout))
        return gateway

    result = verify_did_pkh(DID, caller, config=make_config(**config_kw), tx_hash=tx_hash, gateway_factory=factory)
    return result, factory_calls


def test_owner_match_short_circuits_later_strategies():
    gateway = FakeGateway(getters={"owner": CALLER})
    result, factory_calls = run(gateway)
    assert result.ok
    assert result.method == CONTRACT_METHOD
    assert result.evidence == {"source": "owner()", "controller": CALLER}
    assert gateway.calls == ["owner"]
    assert factory_calls == [("http://rpc.test", 15.0)]


def test_reverting_getters_fall_through_to_admin():
    gateway = FakeGateway(getters={"owner": ZERO_ADDRESS, "admin": CALLER})
    result, _ = run(gateway)
    assert result.ok
    assert result.evidence["source"] == "admin()"
    assert "get_storage_at" not in gateway.calls


def test_proxy_admin_slot_checks_code_then_low_20_bytes():
    gateway = FakeGateway(storage=slot_word(CALLER))
    result, _ = run(gateway)
    assert result.ok
    assert result.evidence["source"] == EIP1967_SOURCE
    assert result.evidence["controller"].lower() == CALLER
    assert gateway.calls == ["owner", "admin", "getOwner", "get_code", "get_storage_at"]


def test_proxy_slot_skipped_without_bytecode():
    gateway = FakeGateway(code=b"", storage=slot_word(CALLER))
    result, _ = run(gateway)
    assert not result.ok
    assert "get_storage_at" not in gateway.calls


def test_minting_wallet_needs_discovered_controller():
    with_owner = FakeGateway(getters={"owner": OTHER})
    result, _ = run(with_owner, caller=CONTRACT)
    assert result.ok
    assert result.method == MINTING_WALLET
    assert result.evidence["controller"] == OTHER

    without_owner = FakeGateway()
    result, _ = run(without_owner, caller=CONTRACT)
    assert not result.ok
    assert result.reason == "Contract ownership verification failed"


def test_unrelated_caller_fails_with_discovered_owner_in_details():
    result, _ = run(FakeGateway(getters={"owner": OTHER}))
    assert not result.ok
    assert OTHER in result.details


def test_transfer_requires_a_controlling_wallet():
    result, _ = run(FakeGateway(), tx_hash=TX)
    assert not result.ok
    assert result.reason == "Could not discover controlling wallet"


def make_transfer_gateway(*, sender=OTHER, recipient=CALLER, value=None, status=1, tx_block=98, head=100):
    if value is None:
        value = expected_amount_for(DID, CALLER, 66238)
    return FakeGateway(
        getters={"owner": OTHER},
        txs={TX: {"from": sender, "to": recipient, "value": value, "blockNumber": tx_block}},
        receipts={TX: {"status": status, "blockNumber": tx_block}},
        block=head,
    )


def test_transfer_proof_accepts_exact_amount():
    result, _ = run(make_transfer_gateway(), tx_hash=TX)
    assert result.ok
    assert result.method == TRANSFER
    assert result.evidence["confirmations"] == 3
    assert result.evidence["proof"]["proofObject"] == {"chainId": "eip155:66238", "txHash": TX}


def test_transfer_proof_rejects_mismatches():
    expected = expected_amount_for(DID, CALLER, 66238)
    cases = {
        "Wrong sender": make_transfer_gateway(sender=CALLER),
        "Wrong recipient": make_transfer_gateway(recipient=OTHER),
        "Wrong amount": make_transfer_gateway(value=expected + 1),
        "Transaction reverted": make_transfer_gateway(status=0),
    }
    for reason, gateway in cases.items():
        result, _ = run(gateway, tx_hash=TX)
        assert not result.ok
        assert result.reason == reason


def test_transfer_proof_honours_confirmation_depth():
    result, _ = run(make_transfer_gateway(tx_block=100, head=100), tx_hash=TX, min_confirmations=3)
    assert not result.ok
    assert result.reason == "Transaction not confirmed"


def test_missing_transaction():
    gateway = FakeGateway(getters={"owner": OTHER})
    result, _ = run(gateway, tx_hash=TX)
    assert result.reason == "Transaction not found"


def test_missing_client_id_for_foreign_chain_is_a_configuration_error():
    with pytest.raises(ConfigurationError) as exc:
        verify_did_pkh(
            f"did:pkh:eip155:137:{CONTRACT}", CALLER, config=make_config(client_id=""), gateway_factory=lambda *a, **k: None
        )
    assert exc.value.status == 500
    assert exc.value.code == "THIRDWEB_CLIENT_ID_MISSING"


def test_discover_controlling_wallet_returns_first_evidence():
    gateway = FakeGateway(getters={"getOwner": OTHER}, storage=slot_word(CALLER))
    evidence = discover_controlling_wallet(OwnershipContext(gateway=gateway, contract_address=CONTRACT))
    assert evidence.source == "getOwner()"
    assert evidence.controller == OTHER


@pytest.mark.parametrize("caller", [upper_hex(CALLER), checksummed(CALLER)])
def test_owner_match_ignores_address_case(caller):
    result, _ = run(FakeGateway(getters={"owner": CALLER}), caller=caller)
    assert result.ok
    assert result.method == CONTRACT_METHOD


def test_proxy_slot_match_ignores_address_case():
    # the slot yields a checksummed address
    result, _ = run(FakeGateway(storage=slot_word(CALLER)), caller=upper_hex(CALLER))
    assert result.ok
    assert result.evidence["controller"] == checksummed(CALLER)


def test_minting_wallet_match_ignores_address_case():
    result, _ = run(FakeGateway(getters={"owner": OTHER}), caller=checksummed(CONTRACT))
    assert result.ok
    assert result.method == MINTING_WALLET


def test_transfer_proof_ignores_address_case():
    gateway = make_transfer_gateway(sender=checksummed(OTHER), recipient=checksummed(CALLER))
    result, _ = run(gateway, caller=upper_hex(CALLER), tx_hash=TX)
    assert result.ok
    assert result.method == TRANSFER

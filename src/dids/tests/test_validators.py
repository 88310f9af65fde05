import pytest

from src.core.exceptions import InvalidRequestError
from src.dids.utils.validators import (
    validate_connected_address,
    validate_did_field,
    validate_required_schemas,
    validate_tx_hash,
)

ADDR = "0x" + "ab" * 20
TX = "0x" + "12" * 32


@pytest.mark.parametrize("value", [None, "", "   ", 12])
def test_did_is_required(value):
    with pytest.raises(InvalidRequestError) as exc:
        validate_did_field(value)
    assert exc.value.status == 400
    assert exc.value.message == "DID is required"


def test_did_is_trimmed():
    assert validate_did_field("  did:web:example.com ") == "did:web:example.com"


def test_address_missing_and_invalid_have_distinct_codes():
    with pytest.raises(InvalidRequestError) as missing:
        validate_connected_address(None)
    assert missing.value.code == "ADDRESS_REQUIRED"

    with pytest.raises(InvalidRequestError) as invalid:
        validate_connected_address("0x1234")
    assert invalid.value.code == "ADDRESS_INVALID"
    assert invalid.value.message == "Invalid Ethereum address format"


def test_address_accepts_any_case():
    assert validate_connected_address(ADDR.upper().replace("0X", "0x")) == ADDR.upper().replace("0X", "0x")


def test_tx_hash_optional_but_strict():
    assert validate_tx_hash(None) is None
    assert validate_tx_hash("") is None
    assert validate_tx_hash(TX) == TX
    with pytest.raises(InvalidRequestError):
        validate_tx_hash("0x1234")


def test_required_schemas_default_and_dedup():
    default = ("oma3.ownership.v1",)
    assert validate_required_schemas(None, default) == ["oma3.ownership.v1"]
    assert validate_required_schemas([], default) == ["oma3.ownership.v1"]
    assert validate_required_schemas(["a", " a ", "b"], default) == ["a", "b"]
    with pytest.raises(InvalidRequestError):
        validate_required_schemas("oma3.ownership.v1", default)

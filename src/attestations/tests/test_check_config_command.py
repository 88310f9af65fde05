import json

import pytest
from django.core.management import call_command

from src.attestations.signers import load_signer

KEY = "0x" + "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@pytest.fixture(autouse=True)
def fresh_signer():
    load_signer.cache_clear()
    yield
    load_signer.cache_clear()


def run(capsys):
    with pytest.raises(SystemExit) as exc:
        call_command("check_attestation_config", "--skip-rpc", "--json")
    return exc.value.code, json.loads(capsys.readouterr().out)


def test_missing_client_id_is_a_problem(settings, capsys):
    settings.ISSUER_PRIVATE_KEY = KEY
    settings.THIRDWEB_CLIENT_ID = ""
    code, report = run(capsys)
    assert code == 1
    assert report["ok"] is False
    assert report["thirdwebClientId"] == "None"
    assert any("THIRDWEB_CLIENT_ID" in problem for problem in report["problems"])


def test_complete_configuration_passes(settings, capsys):
    settings.ISSUER_PRIVATE_KEY = KEY
    code, report = run(capsys)
    assert code == 0
    assert report["ok"] is True
    assert report["problems"] == []
    assert report["chain"]["chainId"] == 66238
    assert report["signer"]["type"] == "Direct Private Key"


def test_missing_signer_is_a_problem(settings, capsys):
    code, report = run(capsys)
    assert code == 1
    assert report["signer"]["type"] == "Error"

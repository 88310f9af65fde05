import pytest
from ninja.testing import TestClient

from src.api.urls import api
from src.attestations import services
from src.attestations.attestation_schemas import KEY_BINDING, OWNERSHIP
from src.attestations.config import load_attestation_config
from src.attestations.gateway import ChainGateway
from src.attestations.tests.fakes import CALLER, CONTRACT, OTHER, FakeGateway, FakeResolver, FakeSigner
from src.attestations.verification import web
from src.dids.resolver.services import DidDocumentFetchError
from src.dids.utils.did_methods import did_hash

WEB_DID = "did:web:example.com"


@pytest.fixture(autouse=True)
def fresh_config():
    load_attestation_config.cache_clear()
    yield
    load_attestation_config.cache_clear()


@pytest.fixture
def client():
    return TestClient(api)


@pytest.fixture
def resolver(monkeypatch):
    fake = FakeResolver()
    monkeypatch.setattr(services, "resolver_for", lambda config, gateway_factory=None: fake)
    return fake


@pytest.fixture
def signer(monkeypatch):
    fake = FakeSigner()
    monkeypatch.setattr(services, "load_signer", lambda conf, timeout: fake)
    return fake


@pytest.fixture
def dns_record(monkeypatch):
    records = []
    monkeypatch.setattr(web, "lookup_txt_records", lambda name, timeout: list(records))

    def unreachable(did, timeout):
        raise DidDocumentFetchError("DID document not accessible (404 Not Found)", url="https://example.com/.well-known/did.json", status=404)

    monkeypatch.setattr(web, "load_from_web", unreachable)
    return records


def test_fast_path_skips_verification(client, resolver, signer, dns_record):
    resolver.controllers[(did_hash(WEB_DID), OWNERSHIP.uid)] = CALLER
    response = client.post("/verify-and-attest", json={"did": WEB_DID, "connectedAddress": CALLER})
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["message"] == "All attestations already exist"
    assert body["attestations"] == {"present": [OWNERSHIP.uid], "missing": []}
    assert body["elapsed"].endswith("ms")
    assert signer.sent == []


def test_dns_verification_writes_missing_schema(client, resolver, signer, dns_record):
    dns_record.append(f"v=1 caip10=eip155:66238:{CALLER}")
    response = client.post("/verify-and-attest", json={"did": "did:web:Example.com", "connectedAddress": CALLER})
    assert response.status_code == 200
    body = response.json()
    assert body["method"] == "dns"
    assert len(body["txHashes"]) == 1
    assert body["attestations"] == {"present": [OWNERSHIP.uid], "missing": []}
    assert "warnings" not in body
    assert "debug" not in body
    assert signer.sent == [(OWNERSHIP.uid, 66238)]


def test_failed_verification_is_403(client, resolver, signer, dns_record):
    response = client.post("/verify-and-attest", json={"did": WEB_DID, "connectedAddress": CALLER})
    assert response.status_code == 403
    body = response.json()
    assert body["ok"] is False
    assert body["status"] == "failed"
    assert body["code"] == "VERIFICATION_FAILED"
    assert body["error"] == "DID ownership verification failed"
    assert "No DNS TXT record found" in body["details"]
    assert body["attestations"] == {"present": [], "missing": [OWNERSHIP.uid]}
    assert signer.sent == []


@pytest.mark.parametrize(
    "payload,code",
    [
        ({"did": "did:key:z6Mkabc", "connectedAddress": CALLER}, "UNSUPPORTED_DID"),
        ({"did": "did:pkh:eip155:1", "connectedAddress": CALLER}, "INVALID_DID"),
        ({"did": WEB_DID, "connectedAddress": "0x1234"}, "ADDRESS_INVALID"),
        ({"connectedAddress": CALLER}, "DID_REQUIRED"),
        ({"did": WEB_DID, "connectedAddress": CALLER, "txHash": "0xabc"}, "TX_HASH_INVALID"),
        ({"did": WEB_DID, "connectedAddress": CALLER, "requiredSchemas": "oma3.ownership.v1"}, "SCHEMAS_INVALID"),
    ],
)
def test_bad_requests_are_400(client, resolver, signer, payload, code):
    response = client.post("/verify-and-attest", json=payload)
    assert response.status_code == 400
    assert response.json()["code"] == code


def test_partial_write_reports_warnings(client, resolver, monkeypatch, dns_record):
    partial = FakeSigner(fail_for={OWNERSHIP.uid})
    monkeypatch.setattr(services, "load_signer", lambda conf, timeout: partial)
    dns_record.append(f"v=1 caip10=eip155:1:{CALLER}")
    response = client.post(
        "/verify-and-attest",
        json={"did": WEB_DID, "connectedAddress": CALLER, "requiredSchemas": [OWNERSHIP.uid, KEY_BINDING.uid]},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["attestations"] == {"present": [KEY_BINDING.uid], "missing": [OWNERSHIP.uid]}
    assert body["warnings"] == [{"schema": OWNERSHIP.uid, "error": "RuntimeError: nonce too low"}]


def test_all_writes_failing_is_500(client, resolver, monkeypatch, dns_record):
    broken = FakeSigner(fail_for={OWNERSHIP.uid})
    monkeypatch.setattr(services, "load_signer", lambda conf, timeout: broken)
    dns_record.append(f"v=1 caip10=eip155:1:{CALLER}")
    response = client.post("/verify-and-attest", json={"did": WEB_DID, "connectedAddress": CALLER})
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "ATTESTATION_WRITE_FAILED"
    assert body["details"][0]["schema"] == OWNERSHIP.uid


def test_pkh_owner_verification(client, resolver, signer, monkeypatch):
    gateway = FakeGateway(getters={"owner": CALLER})
    monkeypatch.setattr(ChainGateway, "from_rpc_url", staticmethod(lambda rpc_url, timeout: gateway))
    response = client.post(
        "/verify-and-attest", json={"did": f"did:pkh:eip155:66238:{CONTRACT}", "connectedAddress": CALLER}
    )
    assert response.status_code == 200
    assert response.json()["method"] == "contract"


def test_discover_controlling_wallet(client, monkeypatch):
    gateway = FakeGateway(getters={"admin": OTHER})
    monkeypatch.setattr(ChainGateway, "from_rpc_url", staticmethod(lambda rpc_url, timeout: gateway))
    response = client.post("/discover-controlling-wallet", json={"did": f"did:pkh:eip155:66238:{CONTRACT}"})
    assert response.status_code == 200
    body = response.json()
    assert body["controllingWallet"] == OTHER
    assert body["source"] == "admin()"
    assert body["chainId"] == 66238


def test_discover_without_owner_is_404(client, monkeypatch):
    gateway = FakeGateway(code=b"")
    monkeypatch.setattr(ChainGateway, "from_rpc_url", staticmethod(lambda rpc_url, timeout: gateway))
    response = client.post("/discover-controlling-wallet", json={"did": f"did:pkh:eip155:66238:{CONTRACT}"})
    assert response.status_code == 404
    assert response.json()["code"] == "CONTROLLER_NOT_FOUND"


def test_discover_rejects_did_web(client):
    response = client.post("/discover-controlling-wallet", json={"did": WEB_DID})
    assert response.status_code == 400


def test_transfer_instructions(client):
    response = client.post(
        "/transfer-instructions", json={"did": f"did:pkh:eip155:8453:{CONTRACT}", "connectedAddress": CALLER}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["recipient"] == CALLER
    assert body["amount"]["symbol"] == "ETH"
    assert 10**14 <= int(body["amount"]["wei"]) < 10**14 + 10**13
    assert body["proofTemplate"]["proofObject"]["chainId"] == "eip155:8453"


def test_transfer_instructions_unknown_chain(client):
    response = client.post(
        "/transfer-instructions", json={"did": f"did:pkh:eip155:999:{CONTRACT}", "connectedAddress": CALLER}
    )
    assert response.status_code == 400
    assert response.json()["code"] == "CHAIN_UNSUPPORTED"


def test_missing_client_id_is_a_server_configuration_error(client, resolver, signer, settings):
    settings.THIRDWEB_CLIENT_ID = ""
    did = f"did:pkh:eip155:1:{CONTRACT}"
    response = client.post("/verify-and-attest", json={"did": did, "connectedAddress": CALLER})
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "THIRDWEB_CLIENT_ID_MISSING"
    assert body["error"] == "Server configuration error"
    assert signer.sent == []

    response = client.post("/discover-controlling-wallet", json={"did": did})
    assert response.status_code == 500
    assert response.json()["code"] == "THIRDWEB_CLIENT_ID_MISSING"


def test_equivalent_schema_uids_are_written_once(client, resolver, signer, dns_record):
    dns_record.append(f"v=1 caip10=eip155:66238:{CALLER}")
    response = client.post(
        "/verify-and-attest",
        json={"did": WEB_DID, "connectedAddress": CALLER, "requiredSchemas": [OWNERSHIP.uid, OWNERSHIP.uid.upper()]},
    )
    assert response.status_code == 200
    assert len(response.json()["txHashes"]) == 1
    assert signer.sent == [(OWNERSHIP.uid, 66238)]


def test_debug_payload_after_write(client, resolver, signer, dns_record, settings):
    settings.ATTESTATION_DEBUG = True
    dns_record.append(f"v=1 caip10=eip155:66238:{CALLER}")
    response = client.post("/verify-and-attest", json={"did": "did:web:Example.com", "connectedAddress": CALLER})
    assert response.status_code == 200
    debug = response.json()["debug"]
    assert debug["did"] == "did:web:Example.com"
    assert debug["normalizedDid"] == WEB_DID
    assert debug["didHash"] == did_hash(WEB_DID)
    assert debug["connectedAddress"] == CALLER
    assert debug["chainId"] == 66238
    assert debug["rpc"] == "http://rpc.test"
    assert debug["contractAddresses"]["resolver"] == settings.ATTESTATION_RESOLVER_ADDRESS
    assert set(debug["contractAddresses"]) == {"registry", "metadata", "resolver"}
    assert debug["issuerType"] == signer.kind
    assert debug["issuerAddress"] == signer.address
    assert debug["currentOwnerAfter"] == CALLER


def test_debug_payload_on_failed_verification(client, resolver, signer, dns_record, settings):
    settings.ATTESTATION_DEBUG = True
    response = client.post("/verify-and-attest", json={"did": WEB_DID, "connectedAddress": CALLER})
    assert response.status_code == 403
    debug = response.json()["debug"]
    assert debug["didHash"] == did_hash(WEB_DID)
    # no signer is loaded before verification succeeds
    assert "issuerAddress" not in debug
    assert "currentOwnerAfter" not in debug


@pytest.mark.parametrize("debug", [True, False])
def test_unexpected_errors_expose_the_stack_only_under_debug(client, monkeypatch, settings, debug):
    settings.ATTESTATION_DEBUG = debug

    def explode(**kwargs):
        raise RuntimeError("resolver exploded")

    monkeypatch.setattr(services, "verify_and_attest", explode)
    response = client.post("/verify-and-attest", json={"did": WEB_DID, "connectedAddress": CALLER})
    assert response.status_code == 500
    body = response.json()
    assert body["code"] == "INTERNAL_ERROR"
    assert body["error"] == "Internal server error"
    assert ("stack" in body) is debug
    assert body.get("details") == ("resolver exploded" if debug else None)

"""In-memory stand-ins for the chain gateway, resolver and signers."""
from types import SimpleNamespace as NS

from web3 import Web3

from src.attestations.chains import ChainContext, ZERO_ADDRESS
from src.attestations.config import AttestationConfig, SignerSettings

RESOLVER = "0x7946127D2f517c8584FdBF801b82F54436EC6FC7"
# lowercase on purpose; tests derive the checksummed and upper-case spellings
CALLER = "0xa1b2c3d4e5f60718293a4b5c6d7e8f9012345678"
OTHER = "0xbeefbeefbeefbeefbeefbeefbeefbeefbeefbeef"
CONTRACT = "0xc0ffee00c0ffee00c0ffee00c0ffee00c0ffee00"


def checksummed(address: str) -> str:
    return Web3.to_checksum_address(address)


def upper_hex(address: str) -> str:
    return "0x" + address[2:].upper()


def make_config(**kw) -> AttestationConfig:
    chain = ChainContext(
        preset="omachain-testnet",
        label="OMAchain Testnet",
        chain_id=66238,
        rpc_url="http://rpc.test",
        resolver=RESOLVER,
        registry=ZERO_ADDRESS,
        metadata=ZERO_ADDRESS,
    )
    defaults = dict(chain=chain, signer=SignerSettings(), client_id="test-client")
    defaults.update(kw)
    return AttestationConfig(**defaults)


class FakeGateway:
    """
    getters: {"owner": address | Exception}
    storage: 32-byte word returned for any slot
    """

    def __init__(self, *, getters=None, code=b"\x60\x80", storage=b"\x00" * 32, txs=None, receipts=None, block=100):
        self.getters = getters or {}
        self.code = code
        self.storage = storage
        self.txs = txs or {}
        self.receipts = receipts or {}
        self.block = block
        self.calls = []
        self.sent = []

    def call_address_getter(self, address, function_name):
        self.calls.append(function_name)
        value = self.getters.get(function_name, ValueError("execution reverted"))
        if isinstance(value, Exception):
            raise value
        return value

    def get_code(self, address):
        self.calls.append("get_code")
        return self.code

    def get_storage_at(self, address, slot):
        self.calls.append("get_storage_at")
        return self.storage

    def get_transaction(self, tx_hash):
        return self.txs.get(tx_hash)

    def get_transaction_receipt(self, tx_hash):
        return self.receipts.get(tx_hash)

    def block_number(self):
        return self.block

    def wait_for_receipt(self, tx_hash, *, timeout):
        return self.receipts.get(tx_hash, {"status": 1, "blockNumber": self.block})


class FakeResolver:
    """Controllers keyed by (did_hash, schema uid, lowercase)."""

    def __init__(self, gateway=None, controllers=None, fail_reads=False):
        self.gateway = gateway or FakeGateway()
        self.controllers = {k: v for k, v in (controllers or {}).items()}
        self.fail_reads = fail_reads
        self.prepared = []

    def current_controller(self, did_hash, schema, uid=None):
        if self.fail_reads:
            raise ConnectionError("rpc down")
        return self.controllers.get((did_hash, (uid or schema.uid).lower()), ZERO_ADDRESS)

    def prepare_write(self, schema, did_hash, controller):
        self.prepared.append(schema.uid)
        return NS(schema=schema.uid, did_hash=did_hash, controller=controller)


class FakeSigner:
    kind = "Direct Private Key"
    address = "0x9999999999999999999999999999999999999999"

    def __init__(self, fail_for=(), revert_for=()):
        self.fail_for = set(fail_for)
        self.revert_for = set(revert_for)
        self.sent = []

    def send(self, gateway, resolver, call, *, chain_id):
        if call.schema in self.fail_for:
            raise RuntimeError("nonce too low")
        tx_hash = "0x" + f"{len(self.sent) + 1:064x}"
        self.sent.append((call.schema, chain_id))
        if call.schema in self.revert_for:
            gateway.receipts[tx_hash] = {"status": 0, "blockNumber": gateway.block}
        else:
            # reflect the write so that read-back sees it
            resolver.controllers[(call.did_hash, call.schema.lower())] = call.controller
        return tx_hash

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import unquote

from eth_utils import keccak

from src.dids.utils.caip10 import Caip10Account, parse_caip10

WEB = "web"
PKH = "pkh"

methods = [
    {
        "method": WEB,
        "pattern": "^(did:web:.+)$",
        "description": "Domain control proven by DNS TXT record or hosted did.json",
    },
    {
        "method": PKH,
        "pattern": "^(did:pkh:eip155:[0-9]+:0x[0-9a-fA-F]{40})$",
        "description": "Contract control proven by ownership calls, proxy admin slot or transfer",
    },
]

SUPPORTED_METHODS = frozenset(m["method"] for m in methods)


class UnsupportedDidError(ValueError):
    pass


@dataclass(frozen=True)
class ParsedDid:
    raw: str
    method: str
    method_id: str

    @property
    def normalized(self) -> str:
        return normalize_did(self.raw)


@dataclass(frozen=True)
class WebDid:
    did: str
    domain: str
    path: tuple[str, ...]

    @property
    def host(self) -> str:
        # did:web encodes a port as %3A
        return unquote(self.domain)

    @property
    def hostname(self) -> str:
        return self.host.split(":", 1)[0]


@dataclass(frozen=True)
class PkhDid:
    did: str
    account: Caip10Account

    @property
    def chain_id(self) -> int | None:
        return self.account.chain_id

    @property
    def address(self) -> str:
        return self.account.address


def parse_did(did: str) -> ParsedDid:
    if not isinstance(did, str):
        raise UnsupportedDidError("Unsupported DID type")
    value = did.strip()
    parts = value.split(":", 2)
    if len(parts) < 3 or parts[0] != "did" or not parts[2]:
        raise UnsupportedDidError("Unsupported DID type")
    method = parts[1]
    if method not in SUPPORTED_METHODS:
        raise UnsupportedDidError("Unsupported DID type")
    return ParsedDid(raw=value, method=method, method_id=parts[2])


def _normalize_web_id(method_id: str) -> str:
    domain, sep, rest = method_id.partition(":")
    return domain.lower().rstrip(".") + sep + rest


def _normalize_pkh_id(method_id: str) -> str:
    parts = method_id.split(":")
    if len(parts) == 3:
        parts[2] = parts[2].lower()
    return ":".join(parts)


def normalize_did(did: str) -> str:
    """
    Case-fold the domain of a did:web or the address of a did:pkh.
    Idempotent; anything else is returned trimmed but otherwise untouched.
    """
    value = did.strip()
    parts = value.split(":", 2)
    if len(parts) < 3 or parts[0] != "did":
        return value
    if parts[1] == WEB:
        return f"did:web:{_normalize_web_id(parts[2])}"
    if parts[1] == PKH:
        return f"did:pkh:{_normalize_pkh_id(parts[2])}"
    return value


def did_hash(did: str) -> str:
    """keccak256 of the normalized DID, 0x-prefixed hex."""
    return "0x" + keccak(text=normalize_did(did)).hex()


def parse_did_web(did: str) -> WebDid:
    parsed = parse_did(did)
    if parsed.method != WEB:
        raise UnsupportedDidError("DID must start with did:web:")
    segments = [s for s in _normalize_web_id(parsed.method_id).split(":")]
    domain = segments[0]
    if not domain:
        raise UnsupportedDidError("did:web is missing a domain")
    return WebDid(did=normalize_did(parsed.raw), domain=domain, path=tuple(s for s in segments[1:] if s))


def parse_did_pkh(did: str) -> PkhDid:
    parsed = parse_did(did)
    if parsed.method != PKH:
        raise UnsupportedDidError("DID must start with did:pkh:")
    account = parse_caip10(parsed.method_id)
    if account is None:
        raise UnsupportedDidError("CAIP-10 must be in format namespace:reference:address")
    if not account.is_evm or account.chain_id is None:
        raise UnsupportedDidError("Only EVM chains (eip155) are supported")
    return PkhDid(did=normalize_did(parsed.raw), account=account)

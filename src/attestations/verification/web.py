"""
did:web verification.

1. DNS TXT record at `<prefix>.<domain>` carrying `v=1` and one or more
   `caip10=<ns>:<ref>:<address>` / `controller=did:pkh:<ns>:<ref>:<address>`
   tokens (whitespace or semicolon separated).
2. Fallback: the hosted DID document, matched on `blockchainAccountId`
   or `publicKeyHex` of each verificationMethod.
"""
from __future__ import annotations

import logging
import re
from typing import Callable

import dns.exception
import dns.resolver

from src.attestations.chains import same_address
from src.attestations.verification.results import DID_DOCUMENT, DNS, Failed, Verified, VerificationResult
from src.dids.resolver.services import DidDocumentFetchError, document_url_for, load_from_web
from src.dids.utils.caip10 import parse_caip10
from src.dids.utils.did_methods import UnsupportedDidError, WebDid, parse_did_web

logger = logging.getLogger(__name__)

VERSION_TOKEN = "v=1"
CONTROLLER_PREFIXES = ("caip10=", "controller=")
_SPLIT_RE = re.compile(r"[;\s]+")

TxtLookup = Callable[[str, float], list[str]]
DocumentFetch = Callable[..., dict]


def txt_record_name(domain: str, prefix: str) -> str:
    return f"{prefix}.{domain}" if prefix else domain


def lookup_txt_records(name: str, timeout: float) -> list[str]:
    resolver = dns.resolver.Resolver()
    resolver.timeout = timeout
    resolver.lifetime = timeout
    answers = resolver.resolve(name, "TXT")
    # a TXT record may be split into several character-strings
    return [b"".join(rdata.strings).decode("utf-8", errors="replace") for rdata in answers]


def _tokens(record: str) -> list[str]:
    return [t for t in _SPLIT_RE.split(record.strip().strip('"')) if t]


def extract_controller_addresses(record: str) -> list[str]:
    """
    Addresses claimed by one TXT record. A record without `v=1` yields nothing;
    malformed tokens are skipped.
    """
    tokens = _tokens(record)
    if VERSION_TOKEN not in tokens:
        return []

    addresses = []
    for token in tokens:
        prefix = next((p for p in CONTROLLER_PREFIXES if token.startswith(p)), None)
        if prefix is None:
            continue
        value = token[len(prefix):]
        if value.startswith("did:pkh:"):
            value = value[len("did:pkh:"):]
        account = parse_caip10(value)
        if account is not None:
            addresses.append(account.address)
    return addresses


def check_dns(did: WebDid, connected_address: str, *, prefix: str, timeout: float,
              txt_lookup: TxtLookup | None = None) -> VerificationResult:
    name = txt_record_name(did.hostname, prefix)
    try:
        records = (txt_lookup or lookup_txt_records)(name, timeout)
    except dns.exception.DNSException as exc:
        logger.info("DNS TXT lookup failed for %s: %s", name, exc)
        return Failed("DNS lookup failed", f"Failed to query DNS TXT record at {name}: {exc}", DNS)

    if not records:
        return Failed(
            "No DNS TXT record found",
            f"No TXT record found at {name}. Create a TXT record with value: v=1 caip10=eip155:<chainId>:{connected_address}",
            DNS,
        )

    found: list[str] = []
    versioned = 0
    for record in records:
        if VERSION_TOKEN in _tokens(record):
            versioned += 1
        for address in extract_controller_addresses(record):
            found.append(address)
            if same_address(address, connected_address):
                return Verified(DNS, {"record": record, "name": name, "address": address})

    if not versioned:
        return Failed("Invalid DNS TXT record format", f'TXT record at {name} is missing "v=1"', DNS)
    if not found:
        return Failed("No controller address in DNS TXT record", f"No caip10= entry found at {name}", DNS)
    return Failed(
        "Address mismatch in DNS TXT record",
        f"Found addresses [{', '.join(found)}] at {name}, but expected {connected_address}",
        DNS,
    )


def _method_addresses(method: dict) -> list[tuple[str, str]]:
    out = []
    account_id = method.get("blockchainAccountId")
    if isinstance(account_id, str):
        parts = account_id.split(":")
        if len(parts) >= 3 and parts[-1]:
            out.append(("blockchainAccountId", parts[-1]))
    public_key_hex = method.get("publicKeyHex")
    if isinstance(public_key_hex, str) and public_key_hex:
        out.append(("publicKeyHex", public_key_hex))
    return out


def _matches(field: str, value: str, connected_address: str) -> bool:
    if field == "publicKeyHex":
        hex_value = value[2:] if value.lower().startswith("0x") else value
        return hex_value.lower() == connected_address[2:].lower()
    return same_address(value, connected_address)


def check_did_document(did: WebDid, connected_address: str, *, timeout: float,
                       fetch: DocumentFetch | None = None) -> VerificationResult:
    url = document_url_for(did)
    try:
        doc = (fetch or load_from_web)(did, timeout=timeout)
    except DidDocumentFetchError as exc:
        logger.info("DID document fetch failed for %s: %s", exc.url, exc.message)
        return Failed("DID document not accessible", f"{exc.message} at {exc.url}", DID_DOCUMENT)

    methods = doc.get("verificationMethod") or []
    if not isinstance(methods, list) or not methods:
        return Failed("No verification methods in DID document", f"DID document at {url} has no verificationMethod", DID_DOCUMENT)

    found: list[str] = []
    for method in methods:
        if not isinstance(method, dict):
            continue
        for field, value in _method_addresses(method):
            found.append(value)
            if _matches(field, value, connected_address):
                return Verified(DID_DOCUMENT, {"url": url, "verificationMethod": method.get("id"), "field": field})

    return Failed(
        "Address not found in DID document",
        f"Found [{', '.join(found)}] in DID document at {url}, but expected {connected_address}",
        DID_DOCUMENT,
    )


def verify_did_web(did: str, connected_address: str, *, config,
                   txt_lookup: TxtLookup | None = None,
                   fetch: DocumentFetch | None = None) -> VerificationResult:
    try:
        web_did = parse_did_web(did)
    except UnsupportedDidError as exc:
        return Failed("Invalid DID format", str(exc))

    dns_result = check_dns(web_did, connected_address, prefix=config.dns_txt_prefix,
                           timeout=config.dns_timeout, txt_lookup=txt_lookup)
    if dns_result.ok:
        return dns_result

    logger.info("DNS verification failed for %s (%s), trying DID document", web_did.did, dns_result.reason)
    doc_result = check_did_document(web_did, connected_address, timeout=config.http_timeout, fetch=fetch)
    if doc_result.ok:
        return doc_result

    return Failed(
        "DID ownership verification failed",
        f"DNS check: {dns_result.reason}. DID document check: {doc_result.reason}. "
        f"Publish a TXT record at {txt_record_name(web_did.hostname, config.dns_txt_prefix)} "
        f'with value "v=1 caip10=eip155:<chainId>:{connected_address}" or list the address in '
        f"{document_url_for(web_did)}",
    )

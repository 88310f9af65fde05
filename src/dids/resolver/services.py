from __future__ import annotations

import requests

from src.dids.utils.did_methods import WebDid

WELL_KNOWN = ".well-known"
DOCUMENT_NAME = "did.json"


class DidDocumentFetchError(Exception):
    def __init__(self, message: str, *, url: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.url = url
        self.status = status


def document_url_for(did: WebDid) -> str:
    # did:web:{host}            -> https://{host}/.well-known/did.json
    # did:web:{host}:{a}:{b}    -> https://{host}/a/b/did.json
    if did.path:
        return f"https://{did.host}/{'/'.join(did.path)}/{DOCUMENT_NAME}"
    return f"https://{did.host}/{WELL_KNOWN}/{DOCUMENT_NAME}"


def load_from_web(did: WebDid, *, timeout: float, session: requests.Session | None = None) -> dict:
    url = document_url_for(did)
    http = session or requests
    try:
        resp = http.get(url, headers={"Accept": "application/did+json, application/json"}, timeout=timeout)
    except requests.RequestException as exc:
        raise DidDocumentFetchError(f"DID document fetch failed: {exc}", url=url) from exc

    if resp.status_code != 200:
        raise DidDocumentFetchError(
            f"DID document not accessible ({resp.status_code} {resp.reason})",
            url=url,
            status=resp.status_code,
        )
    try:
        doc = resp.json()
    except ValueError as exc:
        raise DidDocumentFetchError("DID document is not valid JSON", url=url, status=resp.status_code) from exc

    if not isinstance(doc, dict):
        raise DidDocumentFetchError("DID document must be a JSON object", url=url, status=resp.status_code)
    return doc

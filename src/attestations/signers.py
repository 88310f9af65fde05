"""
Attestation signers.

Exactly one signer is active per process:
- ManagedWalletSigner when a managed-wallet secret key and wallet address are set;
- LocalKeySigner otherwise, with the key taken from ISSUER_PRIVATE_KEY
  (environment or OpenBao) or from ISSUER_PRIVATE_KEY_FILE.
"""
from __future__ import annotations

import logging
import re
from functools import lru_cache
from pathlib import Path

import requests
from eth_account import Account
from web3 import Web3

from src.attestations.config import SignerSettings
from src.attestations.gateway import ChainGateway
from src.attestations.resolver import ResolverCall, ResolverClient
from src.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-f]{64}$")

LOCAL_KEY = "Direct Private Key"
MANAGED_WALLET = "Managed Wallet"


class ManagedWalletError(RuntimeError):
    pass


def _normalize_private_key(raw: str, source: str) -> str:
    key = re.sub(r"\s+", "", raw).lower()
    if not key.startswith("0x"):
        key = "0x" + key
    if not _PRIVATE_KEY_RE.match(key):
        raise ConfigurationError(
            message="Invalid issuer private key",
            code="SIGNER_INVALID_KEY",
            errors=f"Invalid private key format in {source}. Expected 0x + 64 hex chars, got {len(key)} chars",
        )
    return key


def load_private_key(conf: SignerSettings) -> str:
    if conf.private_key:
        logger.info("Using issuer private key from ISSUER_PRIVATE_KEY")
        return _normalize_private_key(conf.private_key, "ISSUER_PRIVATE_KEY")

    path = Path(conf.key_file).expanduser() if conf.key_file else None
    if path is None or not path.is_file():
        raise ConfigurationError(
            message="No issuer key configured",
            code="SIGNER_NOT_CONFIGURED",
            errors=(
                "Set ISSUER_PRIVATE_KEY (environment or OpenBao), create the key file "
                f"{conf.key_file or '<ISSUER_PRIVATE_KEY_FILE>'}, or configure a managed wallet"
            ),
        )
    logger.info("Using issuer private key from %s", path)
    return _normalize_private_key(path.read_text(encoding="utf-8"), str(path))


class LocalKeySigner:
    kind = LOCAL_KEY

    def __init__(self, private_key: str) -> None:
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    def send(self, gateway: ChainGateway, resolver: ResolverClient, call: ResolverCall, *, chain_id: int) -> str:
        tx = resolver.build_transaction(
            call,
            {
                "from": self.address,
                "nonce": gateway.transaction_count(self.address),
                "chainId": chain_id,
            },
        )
        signed = self._account.sign_transaction(tx)
        return gateway.send_raw_transaction(signed.raw_transaction)

    def __repr__(self) -> str:
        return f"LocalKeySigner(address={self.address})"


class ManagedWalletSigner:
    """Delegates signing to a remote wallet service; the key never leaves it."""

    kind = MANAGED_WALLET

    def __init__(self, *, secret_key: str, address: str, url: str, timeout: float, session: requests.Session | None = None) -> None:
        self._secret_key = secret_key
        self.address = Web3.to_checksum_address(address)
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, gateway: ChainGateway, resolver: ResolverClient, call: ResolverCall, *, chain_id: int) -> str:
        payload = {
            "chainId": str(chain_id),
            "from": self.address,
            "transaction": {**call.as_transaction(), "value": "0"},
        }
        try:
            resp = self.session.post(
                self.url,
                json=payload,
                headers={"Content-Type": "application/json", "x-secret-key": self._secret_key},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ManagedWalletError(f"Managed wallet request failed: {exc}") from exc

        if not resp.ok:
            raise ManagedWalletError(f"Managed wallet API error ({resp.status_code}): {resp.text[:500]}")

        body = resp.json()
        tx_hash = body.get("transactionHash") or (body.get("result") or {}).get("transactionHash")
        if not tx_hash:
            raise ManagedWalletError("Managed wallet API response has no transactionHash")
        return tx_hash

    def __repr__(self) -> str:
        return f"ManagedWalletSigner(address={self.address}, url={self.url})"


@lru_cache(maxsize=4)
def load_signer(conf: SignerSettings, timeout: float = 10.0):
    """
    Build the configured signer once per process.
    Raises ConfigurationError when neither signer can be assembled.
    """
    try:
        if conf.uses_managed_wallet:
            signer = ManagedWalletSigner(
                secret_key=conf.managed_secret_key,
                address=conf.managed_address,
                url=conf.managed_url,
                timeout=timeout,
            )
        else:
            signer = LocalKeySigner(load_private_key(conf))
    except ValueError as exc:
        raise ConfigurationError(message="Unusable signer configuration", code="SIGNER_INVALID", errors=str(exc)) from exc
    logger.info("Attestation signer ready: %s (%s)", signer.kind, signer.address)
    return signer


def describe_signer(conf: SignerSettings, timeout: float = 10.0) -> dict[str, str]:
    """Signer type/address for diagnostics; never raises."""
    try:
        signer = load_signer(conf, timeout)
    except ConfigurationError as exc:
        return {"type": "Error", "address": f"Error: {exc.message}"}
    return {"type": signer.kind, "address": signer.address}

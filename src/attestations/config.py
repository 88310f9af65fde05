from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache

from django.conf import settings

from src.attestations.chains import PRESETS, ChainContext, is_zero_address
from src.core.exceptions import ConfigurationError
from src.dids.utils.caip10 import is_evm_address

DEFAULT_SCHEMAS = ("oma3.ownership.v1",)
DEFAULT_MANAGED_WALLET_URL = "https://embedded-wallet.thirdweb.com/api/2023-11-30/transaction/send"


@dataclass(frozen=True)
class SignerSettings:
    private_key: str = field(default="", repr=False)
    key_file: str = ""
    managed_secret_key: str = field(default="", repr=False)
    managed_address: str = ""
    managed_url: str = DEFAULT_MANAGED_WALLET_URL

    @property
    def uses_managed_wallet(self) -> bool:
        return bool(self.managed_secret_key and self.managed_address)


@dataclass(frozen=True)
class AttestationConfig:
    chain: ChainContext
    signer: SignerSettings
    client_id: str = ""
    debug: bool = False
    default_schemas: tuple[str, ...] = DEFAULT_SCHEMAS
    dns_txt_prefix: str = "_omatrust"
    dns_timeout: float = 5.0
    http_timeout: float = 10.0
    rpc_timeout: float = 15.0
    receipt_timeout: float = 120.0
    min_confirmations: int = 1


def _address_override(value: str | None, fallback: str, name: str) -> str:
    if not value:
        return fallback
    if not is_evm_address(value):
        raise ConfigurationError(message=f"{name} is not a valid address", code="INVALID_ADDRESS_CONFIG")
    return value


def build_attestation_config(conf=None) -> AttestationConfig:
    conf = conf or settings
    preset_name = getattr(conf, "ATTESTATION_ACTIVE_CHAIN", "localhost") or "localhost"
    preset = PRESETS.get(preset_name)
    if preset is None:
        raise ConfigurationError(
            message="Invalid active chain",
            code="INVALID_CHAIN",
            errors=f"{preset_name!r} is not one of {sorted(PRESETS)}",
        )

    chain = ChainContext(
        preset=preset.name,
        label=preset.label,
        chain_id=preset.chain_id,
        rpc_url=getattr(conf, "ATTESTATION_RPC_URL", "") or preset.rpc_url,
        resolver=_address_override(getattr(conf, "ATTESTATION_RESOLVER_ADDRESS", ""), preset.resolver, "ATTESTATION_RESOLVER_ADDRESS"),
        registry=_address_override(getattr(conf, "ATTESTATION_REGISTRY_ADDRESS", ""), preset.registry, "ATTESTATION_REGISTRY_ADDRESS"),
        metadata=_address_override(getattr(conf, "ATTESTATION_METADATA_ADDRESS", ""), preset.metadata, "ATTESTATION_METADATA_ADDRESS"),
    )
    if is_zero_address(chain.resolver):
        raise ConfigurationError(message="Resolver not configured", code="RESOLVER_NOT_CONFIGURED")

    signer = SignerSettings(
        private_key=getattr(conf, "ISSUER_PRIVATE_KEY", "") or "",
        key_file=getattr(conf, "ISSUER_PRIVATE_KEY_FILE", "") or "",
        managed_secret_key=getattr(conf, "ATTESTATION_MANAGED_WALLET_SECRET_KEY", "") or "",
        managed_address=getattr(conf, "ATTESTATION_MANAGED_WALLET_ADDRESS", "") or "",
        managed_url=getattr(conf, "ATTESTATION_MANAGED_WALLET_URL", "") or DEFAULT_MANAGED_WALLET_URL,
    )

    schemas = tuple(getattr(conf, "ATTESTATION_DEFAULT_SCHEMAS", None) or DEFAULT_SCHEMAS)

    return AttestationConfig(
        chain=chain,
        signer=signer,
        client_id=getattr(conf, "THIRDWEB_CLIENT_ID", "") or "",
        debug=bool(getattr(conf, "ATTESTATION_DEBUG", False)),
        default_schemas=schemas,
        dns_txt_prefix=getattr(conf, "ATTESTATION_DNS_TXT_PREFIX", "_omatrust") or "",
        dns_timeout=float(getattr(conf, "ATTESTATION_DNS_TIMEOUT", 5.0)),
        http_timeout=float(getattr(conf, "ATTESTATION_HTTP_TIMEOUT", 10.0)),
        rpc_timeout=float(getattr(conf, "ATTESTATION_RPC_TIMEOUT", 15.0)),
        receipt_timeout=float(getattr(conf, "ATTESTATION_RECEIPT_TIMEOUT", 120.0)),
        min_confirmations=max(1, int(getattr(conf, "ATTESTATION_MIN_CONFIRMATIONS", 1))),
    )


@lru_cache(maxsize=1)
def load_attestation_config() -> AttestationConfig:
    """Read once per process; clear with load_attestation_config.cache_clear()."""
    return build_attestation_config()

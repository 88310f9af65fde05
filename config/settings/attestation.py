from config.env import env, env_get

# Chain preset: localhost | omachain-testnet | omachain-mainnet
ATTESTATION_ACTIVE_CHAIN = env.str("ATTESTATION_ACTIVE_CHAIN", default="localhost")
# Overrides for the preset's RPC endpoint and contract addresses (empty = preset value)
ATTESTATION_RPC_URL = env.str("ATTESTATION_RPC_URL", default="")
ATTESTATION_RESOLVER_ADDRESS = env.str("ATTESTATION_RESOLVER_ADDRESS", default="")
ATTESTATION_REGISTRY_ADDRESS = env.str("ATTESTATION_REGISTRY_ADDRESS", default="")
ATTESTATION_METADATA_ADDRESS = env.str("ATTESTATION_METADATA_ADDRESS", default="")

# RPC edge for did:pkh contracts on chains other than the active one
THIRDWEB_CLIENT_ID = env.str("THIRDWEB_CLIENT_ID", default="")

# Signer: managed wallet when secret key + address are set, else local issuer key
ISSUER_PRIVATE_KEY = env_get("ISSUER_PRIVATE_KEY", default="")
ISSUER_PRIVATE_KEY_FILE = env.str("ISSUER_PRIVATE_KEY_FILE", default="~/.ssh/local-attestation-key")
ATTESTATION_MANAGED_WALLET_SECRET_KEY = env_get("ATTESTATION_MANAGED_WALLET_SECRET_KEY", default="")
ATTESTATION_MANAGED_WALLET_ADDRESS = env.str("ATTESTATION_MANAGED_WALLET_ADDRESS", default="")
ATTESTATION_MANAGED_WALLET_URL = env.str(
    "ATTESTATION_MANAGED_WALLET_URL",
    default="https://embedded-wallet.thirdweb.com/api/2023-11-30/transaction/send",
)

ATTESTATION_DEBUG = env.bool("ATTESTATION_DEBUG", default=False)
ATTESTATION_DEFAULT_SCHEMAS = env.list("ATTESTATION_DEFAULT_SCHEMAS", default=["oma3.ownership.v1"])
ATTESTATION_DNS_TXT_PREFIX = env.str("ATTESTATION_DNS_TXT_PREFIX", default="_omatrust")
ATTESTATION_MIN_CONFIRMATIONS = env.int("ATTESTATION_MIN_CONFIRMATIONS", default=1)

# seconds
ATTESTATION_DNS_TIMEOUT = env.float("ATTESTATION_DNS_TIMEOUT", default=5.0)
ATTESTATION_HTTP_TIMEOUT = env.float("ATTESTATION_HTTP_TIMEOUT", default=10.0)
ATTESTATION_RPC_TIMEOUT = env.float("ATTESTATION_RPC_TIMEOUT", default=15.0)
ATTESTATION_RECEIPT_TIMEOUT = env.float("ATTESTATION_RECEIPT_TIMEOUT", default=120.0)

import os

from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}}

# TestClient re-reads api.urls; ninja rejects the second registration otherwise
os.environ.setdefault("NINJA_SKIP_REGISTRY", "yes")

ATTESTATION_ACTIVE_CHAIN = "omachain-testnet"
ATTESTATION_RPC_URL = "http://rpc.test"
ATTESTATION_RESOLVER_ADDRESS = "0x7946127D2f517c8584FdBF801b82F54436EC6FC7"
THIRDWEB_CLIENT_ID = "test-client"
ISSUER_PRIVATE_KEY = ""
ISSUER_PRIVATE_KEY_FILE = ""
ATTESTATION_MANAGED_WALLET_SECRET_KEY = ""
ATTESTATION_MANAGED_WALLET_ADDRESS = ""
ATTESTATION_DEBUG = False
ATTESTATION_DEFAULT_SCHEMAS = ["oma3.ownership.v1"]
ATTESTATION_DNS_TXT_PREFIX = "_omatrust"
ATTESTATION_MIN_CONFIRMATIONS = 1

import environ
import logging
from functools import lru_cache

import hvac

log = logging.getLogger(__name__)

env = environ.Env()

BASE_DIR = environ.Path(__file__) - 2
APPS_DIR = BASE_DIR.path("src")

env.read_env(str(BASE_DIR.path(".env")))

# Secrets that may live in OpenBao instead of the environment
SECRET_NAMES = (
    "DJANGO_SECRET_KEY",
    "ISSUER_PRIVATE_KEY",
    "ATTESTATION_MANAGED_WALLET_SECRET_KEY",
)

OPENBAO_ADDR = env("OPENBAO_ADDR", default="")
# off unless an address is configured
OPENBAO_ENABLED = env.bool("OPENBAO_ENABLED", default=bool(OPENBAO_ADDR))
# token in dev, AppRole in prod
OPENBAO_TOKEN = env("OPENBAO_TOKEN", default="")
OPENBAO_ROLE_ID = env("OPENBAO_ROLE_ID", default="")
OPENBAO_SECRET_ID = env("OPENBAO_SECRET_ID", default="")
OPENBAO_KV_MOUNT = env("OPENBAO_KV_MOUNT", default="secret")
OPENBAO_KV_PATH = env("OPENBAO_KV_PATH", default="attestation")
OPENBAO_TIMEOUT = env.int("OPENBAO_TIMEOUT", default=5)


def _bao_client() -> hvac.Client:
    c = hvac.Client(url=OPENBAO_ADDR, timeout=OPENBAO_TIMEOUT)
    if OPENBAO_TOKEN:
        c.token = OPENBAO_TOKEN
    elif OPENBAO_ROLE_ID and OPENBAO_SECRET_ID:
        login = c.auth.approle.login(role_id=OPENBAO_ROLE_ID, secret_id=OPENBAO_SECRET_ID)
        c.token = login["auth"]["client_token"]
    return c


@lru_cache(maxsize=8)
def bao_read_kv(path=None) -> dict:
    """KV v2 secret at {OPENBAO_KV_MOUNT}/{path or OPENBAO_KV_PATH}, read once per process."""
    resp = _bao_client().secrets.kv.v2.read_secret_version(
        mount_point=OPENBAO_KV_MOUNT,
        path=path or OPENBAO_KV_PATH,
        raise_on_deleted_version=True,
    )
    return resp["data"]["data"] or {}


def _from_bao(name: str, kv_path=None):
    if not OPENBAO_ENABLED:
        return None
    try:
        return bao_read_kv(kv_path).get(name)
    except Exception as e:
        # never log the value, only that the lookup failed
        log.warning("OpenBao lookup for %s failed: %s", name, e)
        return None


def env_get(name: str, default=None, *, kv_path=None):
    """
    Environment (or .env) first, then OpenBao KV v2, then `default`.
    Empty environment values count as unset so that OpenBao can fill them.
    """
    val = env(name, default=None)
    if val:
        return val
    val = _from_bao(name, kv_path)
    return val if val else default


def secret_source(name: str, *, kv_path=None) -> str:
    """Where env_get would take `name` from: "env", "openbao" or "unset"."""
    if env(name, default=None):
        return "env"
    if _from_bao(name, kv_path):
        return "openbao"
    return "unset"

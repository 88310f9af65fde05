from .base import *  # noqa

env.read_env(str(BASE_DIR.path(".env.production")))

DEBUG = env.bool("DEBUG", default=False)

SECRET_KEY = env_get("DJANGO_SECRET_KEY")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])

CORS_ALLOW_ALL_ORIGINS = False

# debug payloads expose RPC URLs and signer identity
ATTESTATION_DEBUG = env.bool("ATTESTATION_DEBUG", default=False)
ATTESTATION_ACTIVE_CHAIN = env.str("ATTESTATION_ACTIVE_CHAIN", default="omachain-testnet")

USE_X_FORWARDED_HOST = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True

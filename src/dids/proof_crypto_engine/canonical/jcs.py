import rfc8785
from eth_utils import keccak


def dumps_bytes(document: dict) -> bytes:
    """RFC 8785 (JCS) canonical UTF-8 bytes."""
    out = rfc8785.dumps(document)
    return out if isinstance(out, (bytes, bytearray)) else out.encode("utf-8")


def keccak_hex(data: bytes) -> str:
    return "0x" + keccak(data).hex()

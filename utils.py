import os
import hashlib
import logging

LOG_LEVEL = os.environ.get("FLUXMETA_LOG_LEVEL", "INFO").upper()
# Unknown names fall back to INFO.
if not isinstance(logging.getLevelName(LOG_LEVEL), int):
    LOG_LEVEL = "INFO"

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)
logger = logging.getLogger("FluxMeta")


def sha1_hash(data: bytes) -> bytes:
    """Computes the SHA-1 hash of the given binary data."""
    return hashlib.sha1(data).digest()


def format_size(num_bytes):
    """Human readable size, e.g. 1.50 MB."""
    for unit, scale in (("GB", 1024 ** 3), ("MB", 1024 ** 2), ("KB", 1024)):
        if num_bytes >= scale:
            return f"{num_bytes / scale:.2f} {unit}"
    return f"{num_bytes} B"

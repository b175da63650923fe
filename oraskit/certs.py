"""Loading trusted CA certificates from PEM files."""

from __future__ import annotations

import re
import ssl
from pathlib import Path

_PEM_CERT_RE = re.compile(
    r"-----BEGIN CERTIFICATE-----.*?-----END CERTIFICATE-----", re.DOTALL
)


def load_cert_pool(path: str | Path) -> ssl.SSLContext:
    """Return a client TLS context that trusts the certificates in a PEM file.

    Invalid certificate blocks are skipped; a file with no usable certificate
    raises ValueError. Errors reading the file propagate as OSError.
    """
    pem = Path(path).read_bytes().decode("ascii", errors="replace")
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
    loaded = 0
    for block in _PEM_CERT_RE.findall(pem):
        try:
            context.load_verify_locations(cadata=block)
        except (ssl.SSLError, ValueError):
            continue
        loaded += 1
    if not loaded:
        raise ValueError(f"Failed to load certificate in file: {path}")
    return context
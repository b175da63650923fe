"""Preparing manifest and blob content from files or standard input."""

from __future__ import annotations

import hashlib
import json
import os
import sys
from pathlib import Path
from typing import BinaryIO

from oraskit.oci import Descriptor, InvalidDigestError, parse_digest

_CHUNK_SIZE = 64 * 1024


def prepare_manifest_content(path: str) -> bytes:
    """Read manifest content from a file, or from standard input when path is ``-``."""
    if not path:
        raise ValueError("missing file name")
    try:
        if path == "-":
            return sys.stdin.buffer.read()
        return Path(path).read_bytes()
    except OSError as err:
        raise OSError(f"failed to read {path}: {err}") from err


def prepare_blob_content(
    path: str, media_type: str, digest: str = "", size: int = -1
) -> tuple[Descriptor, BinaryIO]:
    """Build the descriptor of a blob and return it with an open reader.

    The given digest and size are used when provided. Content read from
    standard input (path ``-``) must come with both. The caller closes the
    returned reader.
    """
    if not path:
        raise ValueError("missing file name")

    if digest:
        try:
            parse_digest(digest)
        except InvalidDigestError as err:
            raise InvalidDigestError(f"invalid digest {digest}: {err}") from err

    if path == "-":
        if size < 0:
            raise ValueError("content size must be provided if it is read from stdin")
        if not digest:
            raise ValueError("content digest must be provided if it is read from stdin")
        return Descriptor(media_type=media_type, digest=digest, size=size), sys.stdin.buffer

    try:
        reader = open(path, "rb")
    except OSError as err:
        raise OSError(f"failed to open {path}: {err}") from err

    try:
        try:
            actual_size = os.fstat(reader.fileno()).st_size
        except OSError as err:
            raise OSError(f"failed to stat {path}: {err}") from err
        if size >= 0 and size != actual_size:
            raise ValueError(
                f"input size {size} does not match the actual content size {actual_size}"
            )
        if not digest:
            hasher = hashlib.sha256()
            for chunk in iter(lambda: reader.read(_CHUNK_SIZE), b""):
                hasher.update(chunk)
            digest = "sha256:" + hasher.hexdigest()
            reader.seek(0)
    except BaseException:
        reader.close()
        raise

    return Descriptor(media_type=media_type, digest=digest, size=actual_size), reader


def parse_media_type(content: bytes) -> str:
    """Return the ``mediaType`` field of JSON content."""
    try:
        doc = json.loads(content)
    except (ValueError, UnicodeDecodeError):
        raise ValueError("not a valid json file") from None
    media_type = ""
    if isinstance(doc, dict):
        value = doc.get("mediaType")
        if value is not None and not isinstance(value, str):
            raise ValueError("not a valid json file")
        media_type = value or ""
    elif doc is not None:
        raise ValueError("not a valid json file")
    if not media_type:
        raise ValueError("media type is not recognized")
    return media_type
"""Pushing blobs to a target and fetching them back."""

from __future__ import annotations

import contextlib
import hashlib
import io
import json
import sys
from typing import Any

from oraskit.fileprep import prepare_blob_content
from oraskit.oci import (
    ANNOTATION_TITLE,
    MEDIA_TYPE_IMAGE_LAYER,
    Descriptor,
    InvalidDigestError,
    parse_digest,
)
from oraskit.repository import parse_reference

_CHUNK_SIZE = 64 * 1024


def _write(out: Any, data: bytes | str) -> None:
    stream = out if out is not None else sys.stdout
    if isinstance(stream, io.TextIOBase):
        if isinstance(data, bytes):
            buffer = getattr(stream, "buffer", None)
            if buffer is not None:
                stream.flush()
                buffer.write(data)
                buffer.flush()
                return
            data = data.decode("utf-8", errors="replace")
    elif isinstance(data, str):
        data = data.encode("utf-8")
    stream.write(data)


def _descriptor_json(desc: Descriptor) -> str:
    return json.dumps(desc.to_dict(), separators=(",", ":"), ensure_ascii=False)


def _print_status(out: Any, desc: Descriptor, status: str, verbose: bool) -> None:
    name = (desc.annotations or {}).get(ANNOTATION_TITLE)
    if name is None:
        if not verbose:
            return
        name = desc.media_type
    _write(out, f"{status} {desc.digest.partition(':')[2][:12]} {name}\n")


def _target_reference(raw: str) -> str:
    """Return the tag or digest part of a reference, or an empty string."""
    if "@" in raw:
        return raw.rpartition("@")[2]
    if "/" in raw:
        return parse_reference(raw).reference
    return ""


def push_blob(
    target: Any,
    file_ref: str,
    media_type: str = MEDIA_TYPE_IMAGE_LAYER,
    reference: str = "",
    size: int = -1,
    output_descriptor: bool = False,
    verbose: bool = False,
    out: Any = None,
) -> Descriptor:
    """Push a blob read from a file, or from stdin when file_ref is ``-``.

    A digest given in the reference (``name@digest``) is used instead of
    computing one; stdin content needs both a digest and a size. Returns the
    descriptor of the blob.
    """
    if file_ref == "-" and size < 0:
        raise ValueError("`--size` must be provided if the blob is read from stdin")

    desc, reader = prepare_blob_content(
        file_ref, media_type, _target_reference(reference), size
    )
    closer = contextlib.nullcontext() if file_ref == "-" else contextlib.closing(reader)
    show = verbose and not output_descriptor
    with closer:
        if target.exists(desc):
            _print_status(out, desc, "Exists", show)
        else:
            _print_status(out, desc, "Uploading", show)
            target.push(desc, reader)
            _print_status(out, desc, "Uploaded ", show)

    if output_descriptor:
        _write(out, _descriptor_json(desc))
        return desc

    _write(out, f"Pushed {reference}\n")
    _write(out, f"Digest: {desc.digest}\n")
    return desc


def _copy_verified(reader: Any, desc: Descriptor, sink: Any) -> None:
    """Copy the reader into sink, then check the size and digest of what passed."""
    algorithm = desc.digest.partition(":")[0]
    hasher = hashlib.new(algorithm)
    total = 0
    for chunk in iter(lambda: reader.read(_CHUNK_SIZE), b""):
        total += len(chunk)
        if total > desc.size:
            raise ValueError(f"{desc.digest}: trailing data")
        hasher.update(chunk)
        sink(chunk)
    if total < desc.size:
        raise ValueError(f"{desc.digest}: unexpected EOF")
    if f"{algorithm}:{hasher.hexdigest()}" != desc.digest:
        raise ValueError(f"{desc.digest}: mismatched digest")


def fetch_blob(
    src: Any,
    reference: str,
    output_path: str = "",
    output_descriptor: bool = False,
    out: Any = None,
) -> Descriptor:
    """Fetch the blob named by ``name@digest``.

    The content goes to ``output_path`` (``-`` for the output stream) and is
    verified against its descriptor; with ``output_descriptor`` the descriptor
    is written out. Returns the blob descriptor.
    """
    if not output_path and not output_descriptor:
        raise ValueError("either `--output` or `--descriptor` must be provided")
    if output_path == "-" and output_descriptor:
        raise ValueError("`--output -` cannot be used with `--descriptor` at the same time")

    digest = reference.rpartition("@")[2] if "@" in reference else ""
    try:
        parse_digest(digest)
    except InvalidDigestError as err:
        raise ValueError(
            f"{reference}: blob reference must be of the form <name@digest>"
        ) from err

    desc = src.resolve(digest)
    if output_path:
        with contextlib.closing(src.fetch(desc)) as reader:
            if output_path == "-":
                _copy_verified(reader, desc, lambda chunk: _write(out, chunk))
                return desc
            with open(output_path, "wb") as file:
                _copy_verified(reader, desc, file.write)

    if output_descriptor:
        _write(out, _descriptor_json(desc))
    return desc
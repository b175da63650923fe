"""Fetching manifests and their configs, and pushing manifests."""

from __future__ import annotations

import io
import json
import sys
from pathlib import Path
from typing import Any, Iterable

from oraskit.fileprep import parse_media_type, prepare_manifest_content
from oraskit.oci import (
    ANNOTATION_TITLE,
    Descriptor,
    NotFoundError,
    digest_from_bytes,
    fetch_all,
    is_image_manifest,
)

MAX_MANIFEST_BYTES = 4 * 1024 * 1024


def _write(out: Any, data: bytes | str) -> None:
    stream = out if out is not None else sys.stdout
    if isinstance(stream, io.TextIOBase):
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
    elif isinstance(data, str):
        data = data.encode("utf-8")
    stream.write(data)


def _println(out: Any, *parts: Any) -> None:
    _write(out, " ".join(str(part) for part in parts) + "\n")


def _output(out: Any, content: bytes, pretty: bool) -> None:
    """Write JSON content as is, or re-indented when pretty output is asked for."""
    if pretty:
        doc = json.loads(content)
        content = (json.dumps(doc, indent=2, ensure_ascii=False) + "\n").encode("utf-8")
    _write(out, content)


def _descriptor_json(desc: Descriptor) -> bytes:
    return json.dumps(desc.to_dict(), separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


def _short_digest(desc: Descriptor) -> str:
    return desc.digest.partition(":")[2][:12]


def _print_status(out: Any, desc: Descriptor, status: str, verbose: bool) -> None:
    name = (desc.annotations or {}).get(ANNOTATION_TITLE)
    if name is None:
        if not verbose:
            return
        name = desc.media_type
    _println(out, status, _short_digest(desc), name)


def _ensure_reference(reference: str) -> None:
    if not reference:
        raise ValueError("no tag or digest specified")


def _check_output_flags(output_path: str, output_descriptor: bool) -> None:
    if output_path == "-" and output_descriptor:
        raise ValueError("`--output -` cannot be used with `--descriptor` at the same time")


def _fetch_bytes(src: Any, reference: str) -> tuple[Descriptor, bytes]:
    desc = src.resolve(reference)
    if desc.size > MAX_MANIFEST_BYTES:
        raise ValueError(
            f"content size {desc.size} exceeds fetch limit {MAX_MANIFEST_BYTES}"
        )
    return desc, fetch_all(src, desc)


def match_digest(resolver: Any, reference: str, digest: str) -> bool:
    """Tell whether the reference resolves to content with the given digest."""
    try:
        got = resolver.resolve(reference)
    except NotFoundError:
        return False
    return got.digest == digest


def fetch_config_desc(src: Any, reference: str) -> Descriptor:
    """Return the config descriptor of the referenced image manifest."""
    manifest_desc, content = _fetch_bytes(src, reference)
    if not is_image_manifest(manifest_desc):
        raise ValueError(
            f"{json.dumps(manifest_desc.digest)} is not an image manifest "
            "and does not have a config"
        )
    doc = json.loads(content)
    if not isinstance(doc, dict):
        raise ValueError("manifest must be a JSON object")
    return Descriptor.from_dict(doc.get("config") or {})


def fetch_config(
    src: Any,
    reference: str,
    output_path: str = "",
    output_descriptor: bool = False,
    pretty: bool = False,
    out: Any = None,
) -> Descriptor:
    """Fetch the config of a manifest and write it out, or save it to a file.

    With ``output_descriptor`` the config descriptor is written too (or only,
    when no output path is given). Returns the config descriptor.
    """
    _check_output_flags(output_path, output_descriptor)
    _ensure_reference(reference)
    config_desc = fetch_config_desc(src, reference)

    if not output_descriptor or output_path:
        content = fetch_all(src, config_desc)
        if output_path in ("", "-"):
            _output(out, content, pretty)
            return config_desc
        Path(output_path).write_bytes(content)

    if output_descriptor:
        _output(out, _descriptor_json(config_desc), pretty)
    return config_desc


def fetch_manifest(
    src: Any,
    reference: str,
    output_path: str = "",
    output_descriptor: bool = False,
    pretty: bool = False,
    out: Any = None,
) -> Descriptor:
    """Fetch a manifest and write it out, or save it to a file.

    With ``output_descriptor`` the manifest descriptor is written too (or only,
    when no output path is given). Returns the manifest descriptor.
    """
    _check_output_flags(output_path, output_descriptor)
    _ensure_reference(reference)

    if output_descriptor and not output_path:
        try:
            desc = src.resolve(reference)
        except NotFoundError as err:
            raise NotFoundError(
                f"failed to find {json.dumps(reference)}: {err}"
            ) from err
    else:
        try:
            desc, content = _fetch_bytes(src, reference)
        except NotFoundError as err:
            raise NotFoundError(
                f"failed to fetch the content of {json.dumps(reference)}: {err}"
            ) from err
        if output_path in ("", "-"):
            _output(out, content, pretty)
            return desc
        Path(output_path).write_bytes(content)

    if output_descriptor:
        _output(out, _descriptor_json(desc), pretty)
    return desc


def _tag_bytes(target: Any, desc: Descriptor, content: bytes, reference: str) -> None:
    if not target.exists(desc):
        target.push(desc, io.BytesIO(content))
    if reference != desc.digest:
        target.tag(desc, reference)


def push_manifest(
    target: Any,
    file_ref: str,
    reference: str = "",
    extra_refs: Iterable[str] = (),
    media_type: str = "",
    output_descriptor: bool = False,
    verbose: bool = False,
    out: Any = None,
) -> Descriptor:
    """Push a manifest read from a file (or ``-`` for stdin) and tag it.

    The media type is read from the manifest unless given. Without a
    reference the manifest is pushed by digest. Returns its descriptor.
    """
    extra_refs = list(extra_refs)
    content = prepare_manifest_content(file_ref)
    if not media_type:
        media_type = parse_media_type(content)
    desc = Descriptor(
        media_type=media_type, digest=digest_from_bytes(content), size=len(content)
    )

    ref = reference or desc.digest
    show = verbose and not output_descriptor
    if match_digest(target, ref, desc.digest):
        _print_status(out, desc, "Exists", show)
    else:
        _print_status(out, desc, "Uploading", show)
        _tag_bytes(target, desc, content, ref)
        _print_status(out, desc, "Uploaded ", show)

    if output_descriptor:
        for tag in extra_refs:
            _tag_bytes(target, desc, content, tag)
        _write(out, _descriptor_json(desc))
        return desc

    _println(out, "Pushed", ref)
    for tag in extra_refs:
        _tag_bytes(target, desc, content, tag)
        _println(out, "Tagged", tag)
    _println(out, "Digest:", desc.digest)
    return desc
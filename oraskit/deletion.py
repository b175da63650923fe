"""Deleting manifests and blobs from a repository."""

from __future__ import annotations

import io
import json
import sys
from typing import Any, Callable

from oraskit.lineio import read_line
from oraskit.oci import Descriptor, InvalidDigestError, NotFoundError, parse_digest
from oraskit.repository import parse_reference

ConfirmFunc = Callable[[str], bool]


def _write(out: Any, text: str) -> None:
    stream = out if out is not None else sys.stdout
    if isinstance(stream, io.TextIOBase):
        stream.write(text)
    else:
        stream.write(text.encode("utf-8"))


def _descriptor_json(desc: Descriptor) -> str:
    return json.dumps(desc.to_dict(), separators=(",", ":"), ensure_ascii=False)


def _ask_stdin(prompt: str) -> bool:
    sys.stdout.write(f"{prompt} [y/N] ")
    sys.stdout.flush()
    answer = read_line(sys.stdin.buffer).decode("utf-8", errors="replace")
    return answer.strip().lower() in ("y", "yes")


def _confirmed(prompt: str, force: bool, confirm: ConfirmFunc | None) -> bool:
    if force:
        return True
    ask = confirm if confirm is not None else _ask_stdin
    return bool(ask(prompt))


def _check_flags(force: bool, output_descriptor: bool) -> None:
    if output_descriptor and not force:
        raise ValueError(
            "must apply --force to confirm the deletion if the descriptor is outputted"
        )


def _delete(
    target: Any,
    reference: str,
    lookup: str,
    kind: str,
    prompt: str,
    force: bool,
    output_descriptor: bool,
    confirm: ConfirmFunc | None,
    out: Any,
) -> Descriptor | None:
    try:
        desc = target.resolve(lookup)
    except NotFoundError as err:
        if force and not output_descriptor:
            _write(out, f"Missing {reference}\n")
            return None
        raise NotFoundError(
            f"{reference}: the specified {kind} does not exist"
        ) from err

    if not _confirmed(prompt.format(digest=json.dumps(desc.digest)), force, confirm):
        return None

    try:
        target.delete(desc)
    except Exception as err:
        raise RuntimeError(f"failed to delete {reference}: {err}") from err

    if output_descriptor:
        _write(out, _descriptor_json(desc))
    else:
        _write(out, f"Deleted {reference}\n")
    return desc


def delete_manifest(
    target: Any,
    reference: str,
    force: bool = False,
    output_descriptor: bool = False,
    confirm: ConfirmFunc | None = None,
    out: Any = None,
) -> Descriptor | None:
    """Delete the manifest named by ``registry/repository:tag`` or ``@digest``.

    Without ``force`` the deletion is confirmed first. Returns the deleted
    descriptor, or None when nothing was deleted.
    """
    _check_flags(force, output_descriptor)
    ref = parse_reference(reference)
    if not ref.reference:
        raise ValueError(
            f"{reference}: no tag or digest specified; "
            "expecting <name>:<tag> or <name>@<digest>"
        )
    return _delete(
        target,
        reference,
        ref.reference,
        "manifest",
        "Are you sure you want to delete the manifest {digest} "
        "and all tags associated with it?",
        force,
        output_descriptor,
        confirm,
        out,
    )


def delete_blob(
    target: Any,
    reference: str,
    force: bool = False,
    output_descriptor: bool = False,
    confirm: ConfirmFunc | None = None,
    out: Any = None,
) -> Descriptor | None:
    """Delete the blob named by ``registry/repository@digest``.

    Without ``force`` the deletion is confirmed first. Returns the deleted
    descriptor, or None when nothing was deleted.
    """
    _check_flags(force, output_descriptor)
    ref = parse_reference(reference)
    try:
        parse_digest(ref.reference)
    except InvalidDigestError as err:
        raise ValueError(
            f"{reference}: blob reference must be of the form <name@digest>"
        ) from err
    return _delete(
        target,
        reference,
        ref.reference,
        "blob",
        "Are you sure you want to delete the blob {digest}?",
        force,
        output_descriptor,
        confirm,
        out,
    )
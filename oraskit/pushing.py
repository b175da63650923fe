"""Pushing packed artifacts and choosing what to pull from a manifest graph."""

from __future__ import annotations

import copy as _copy
import io
import sys
from collections.abc import MutableSet
from typing import Any, Callable

from oraskit.graph import successors
from oraskit.oci import ANNOTATION_TITLE, Descriptor, default_successors

PackFunc = Callable[[], Descriptor]
CopyFunc = Callable[[Descriptor], None]


def _write(out: Any, text: str) -> None:
    stream = out if out is not None else sys.stdout
    if isinstance(stream, io.TextIOBase):
        stream.write(text)
    else:
        stream.write(text.encode("utf-8"))


def _title(desc: Descriptor) -> str | None:
    return (desc.annotations or {}).get(ANNOTATION_TITLE)


def _print_status(out: Any, desc: Descriptor, status: str, verbose: bool) -> None:
    name = _title(desc)
    if name is None:
        if not verbose:
            return
        name = desc.media_type
    _write(out, f"{status} {desc.digest.partition(':')[2][:12]} {name}\n")


def push_artifact(pack: PackFunc, copy: CopyFunc) -> Descriptor:
    """Pack the artifact, copy its root to the destination and return the root."""
    root = pack()
    copy(root)
    return root


def generate_content_key(desc: Descriptor) -> str:
    """Return a key unique to the content and its name, if it has one."""
    return desc.digest + (_title(desc) or "")


def print_once(
    printed: MutableSet[str],
    desc: Descriptor,
    message: str,
    verbose: bool = False,
    out: Any = None,
) -> bool:
    """Print the status of desc unless its content key was already recorded.

    Returns True when the key was newly recorded.
    """
    key = generate_content_key(desc)
    if key in printed:
        return False
    printed.add(key)
    _print_status(out, desc, message, verbose)
    return True


def pull_successors(
    fetcher: Any,
    desc: Descriptor,
    include_subject: bool = False,
    config_path: str = "",
    config_media_type: str = "",
) -> list[Descriptor]:
    """Return the successors of desc that a pull should download.

    The subject is followed only with ``include_subject``. When ``config_path``
    is given and the config matches ``config_media_type`` (or no type is
    given), the config is named after that path. Nodes without a name that
    have no successors of their own are left out.
    """
    nodes, subject, config = successors(fetcher, desc)
    nodes = list(nodes)
    if subject is not None and include_subject:
        nodes.append(subject)
    if config is not None:
        config = _copy.deepcopy(config)
        if config_path and (
            not config_media_type or config.media_type == config_media_type
        ):
            config.annotations = dict(config.annotations or {})
            config.annotations[ANNOTATION_TITLE] = config_path
        nodes.append(config)

    return [
        node
        for node in nodes
        if _title(node) or default_successors(fetcher, node)
    ]
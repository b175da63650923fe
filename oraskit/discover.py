"""Discovering the referrers of a manifest and displaying them."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from typing import Any, TextIO

import yaml

from oraskit.graph import referrers
from oraskit.oci import MEDIA_TYPE_IMAGE_INDEX, Descriptor


@dataclass
class TreeNode:
    """A labelled node of a tree that renders with box-drawing branches."""

    value: Any
    children: list[TreeNode] = field(default_factory=list)

    def add(self, value: Any) -> TreeNode:
        """Return the child with this value, adding it if there is none."""
        for child in self.children:
            if child.value == value:
                return child
        child = TreeNode(value)
        self.children.append(child)
        return child

    def render(self) -> str:
        """Return the tree as text, one node per line."""
        lines = [str(self.value)]
        self._render_children("", lines)
        return "\n".join(lines)

    def _render_children(self, prefix: str, lines: list[str]) -> None:
        for position, child in enumerate(self.children):
            last = position == len(self.children) - 1
            lines.append(prefix + ("└── " if last else "├── ") + str(child.value))
            child._render_children(prefix + ("    " if last else "│   "), lines)


def _annotation_text(key: str, value: str) -> str:
    dumped = yaml.safe_dump(
        {key: value},
        default_flow_style=False,
        allow_unicode=True,
        width=float("inf"),
    )
    return dumped.strip()


def fetch_all_referrers(
    target: Any,
    desc: Descriptor,
    artifact_type: str,
    node: TreeNode,
    verbose: bool = False,
) -> None:
    """Add the referrers of desc, and theirs in turn, beneath node."""
    for ref in referrers(target, desc, artifact_type):
        referrer_node = node.add(ref.artifact_type).add(ref.digest)
        if verbose:
            for key, value in (ref.annotations or {}).items():
                referrer_node.add(_annotation_text(key, value))
        fetch_all_referrers(
            target,
            Descriptor(media_type=ref.media_type, digest=ref.digest, size=ref.size),
            artifact_type,
            referrer_node,
            verbose,
        )


def format_referrers_table(refs: list[Descriptor], verbose: bool = False) -> str:
    """Return the referrers as a two-column table of artifact type and digest."""
    title = "Artifact Type"
    width = max([len(title)] + [len(ref.artifact_type) for ref in refs])

    def row(key: str, value: str) -> str:
        return f"{key} {' ' * (width - len(key) + 1)} {value}"

    lines = [row(title, "Digest")]
    for ref in refs:
        lines.append(row(ref.artifact_type, ref.digest))
        if verbose:
            lines.append(json.dumps(ref.to_dict(), indent=2, ensure_ascii=False))
    return "\n".join(lines)


def referrers_index(refs: list[Descriptor]) -> dict[str, Any]:
    """Return the referrers as the JSON form of an image index."""
    return {
        "schemaVersion": 2,
        "mediaType": MEDIA_TYPE_IMAGE_INDEX,
        "manifests": [ref.to_dict() for ref in refs],
    }


def discover(
    target: Any,
    reference: str,
    path: str,
    artifact_type: str = "",
    output: str = "table",
    verbose: bool = False,
    out: TextIO | None = None,
) -> Descriptor:
    """Print the referrers of the referenced manifest as a table, JSON or a tree.

    The tree output also follows indirect referrers. Returns the resolved
    descriptor of the referenced manifest.
    """
    stream = out if out is not None else sys.stdout
    desc = target.resolve(reference)

    if output == "tree":
        root = TreeNode(f"{path}@{desc.digest}")
        fetch_all_referrers(target, desc, artifact_type, root, verbose)
        stream.write(root.render() + "\n")
        return desc

    refs = referrers(target, desc, artifact_type)
    if output == "json":
        stream.write(json.dumps(referrers_index(refs), indent=2, ensure_ascii=False) + "\n")
        return desc

    noun = "artifacts" if len(refs) > 1 else "artifact"
    stream.write(f"Discovered {len(refs)} {noun} referencing {reference}\n")
    stream.write(f"Digest: {desc.digest}\n")
    if refs:
        stream.write("\n")
        stream.write(format_referrers_table(refs, verbose) + "\n")
    return desc
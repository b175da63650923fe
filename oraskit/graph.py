"""Walking manifests: successors, referrers and referrer predecessors."""

from __future__ import annotations

import json
from typing import Any

from oraskit.oci import (
    MEDIA_TYPE_ARTIFACT_MANIFEST,
    MEDIA_TYPE_DOCKER_MANIFEST,
    MEDIA_TYPE_IMAGE_MANIFEST,
    Descriptor,
    content_equal,
    default_successors,
    fetch_all,
)


def _load_object(data: bytes) -> dict[str, Any]:
    doc = json.loads(data)
    if not isinstance(doc, dict):
        raise ValueError("manifest must be a JSON object")
    return doc


def _descriptor_list(items: Any) -> list[Descriptor]:
    return [Descriptor.from_dict(item) for item in items or []]


def _optional_descriptor(item: Any) -> Descriptor | None:
    return Descriptor.from_dict(item) if item is not None else None


def successors(
    fetcher: Any, node: Descriptor
) -> tuple[list[Descriptor], Descriptor | None, Descriptor | None]:
    """Return the nodes a manifest points to, with its subject and config picked out.

    For image manifests the nodes are the layers; for artifact manifests the
    blobs. Other content falls back to the generic successors with neither
    subject nor config.
    """
    if node.media_type in (MEDIA_TYPE_DOCKER_MANIFEST, MEDIA_TYPE_IMAGE_MANIFEST):
        doc = _load_object(fetch_all(fetcher, node))
        config = Descriptor.from_dict(doc.get("config") or {})
        return (
            _descriptor_list(doc.get("layers")),
            _optional_descriptor(doc.get("subject")),
            config,
        )
    if node.media_type == MEDIA_TYPE_ARTIFACT_MANIFEST:
        doc = _load_object(fetch_all(fetcher, node))
        return (
            _descriptor_list(doc.get("blobs")),
            _optional_descriptor(doc.get("subject")),
            None,
        )
    return default_successors(fetcher, node), None, None


def _referrer_lister(target: Any):
    lister = getattr(target, "referrers", None)
    return lister if callable(lister) else None


def referrers(target: Any, desc: Descriptor, artifact_type: str = "") -> list[Descriptor]:
    """Return the manifests that refer to desc, optionally filtered by artifact type.

    A target with a ``referrers(desc, artifact_type)`` method is asked directly;
    otherwise the predecessors of desc are inspected for a matching subject.
    """
    lister = _referrer_lister(target)
    if lister is not None:
        return list(lister(desc, artifact_type))

    results: list[Descriptor] = []
    for node in target.predecessors(desc):
        if node.media_type == MEDIA_TYPE_ARTIFACT_MANIFEST:
            doc = _load_object(fetch_all(target, node))
            found_type = doc.get("artifactType", "") or ""
        elif node.media_type == MEDIA_TYPE_IMAGE_MANIFEST:
            doc = _load_object(fetch_all(target, node))
            found_type = (doc.get("config") or {}).get("mediaType", "") or ""
        else:
            continue
        subject = _optional_descriptor(doc.get("subject"))
        if subject is None or not content_equal(subject, desc):
            continue
        annotations = doc.get("annotations")
        node.artifact_type = found_type
        node.annotations = dict(annotations) if annotations is not None else None
        if node.artifact_type and artifact_type in ("", node.artifact_type):
            results.append(node)
    return results


def find_referrer_predecessors(src: Any, desc: Descriptor) -> list[Descriptor]:
    """Return the referrers of desc, or its manifest predecessors when listing is unsupported."""
    lister = _referrer_lister(src)
    if lister is not None:
        return list(lister(desc, ""))
    return [
        node
        for node in src.predecessors(desc)
        if node.media_type in (MEDIA_TYPE_ARTIFACT_MANIFEST, MEDIA_TYPE_IMAGE_MANIFEST)
    ]
"""OCI descriptors, media types, digests and an in-memory content store."""

from __future__ import annotations

import contextlib
import copy
import hashlib
import io
import json
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol

MEDIA_TYPE_DOCKER_MANIFEST = "application/vnd.docker.distribution.manifest.v2+json"
MEDIA_TYPE_DOCKER_MANIFEST_LIST = "application/vnd.docker.distribution.manifest.list.v2+json"
MEDIA_TYPE_IMAGE_MANIFEST = "application/vnd.oci.image.manifest.v1+json"
MEDIA_TYPE_IMAGE_INDEX = "application/vnd.oci.image.index.v1+json"
MEDIA_TYPE_ARTIFACT_MANIFEST = "application/vnd.oci.artifact.manifest.v1+json"
MEDIA_TYPE_IMAGE_LAYER = "application/vnd.oci.image.layer.v1.tar"
MEDIA_TYPE_UNKNOWN_CONFIG = "application/vnd.unknown.config.v1+json"
ANNOTATION_TITLE = "org.opencontainers.image.title"

_DIGEST_LENGTHS = {"sha256": 64, "sha384": 96, "sha512": 128}
_DIGEST_RE = re.compile(r"[a-z0-9]+(?:[.+_-][a-z0-9]+)*:[a-zA-Z0-9=_-]+")
_HEX_RE = re.compile(r"[a-f0-9]+")


class NotFoundError(LookupError):
    """Raised when the requested content or reference does not exist."""


class InvalidDigestError(ValueError):
    """Raised when a digest string is malformed or unsupported."""


@dataclass
class Descriptor:
    """Describes a piece of content by media type, digest and size."""

    media_type: str = ""
    digest: str = ""
    size: int = 0
    urls: list[str] | None = None
    annotations: dict[str, str] | None = None
    platform: dict[str, Any] | None = None
    artifact_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form of the descriptor, omitting empty optional fields."""
        out: dict[str, Any] = {
            "mediaType": self.media_type,
            "digest": self.digest,
            "size": self.size,
        }
        if self.urls:
            out["urls"] = list(self.urls)
        if self.annotations:
            out["annotations"] = dict(self.annotations)
        if self.platform:
            out["platform"] = copy.deepcopy(self.platform)
        if self.artifact_type:
            out["artifactType"] = self.artifact_type
        return out

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Descriptor:
        """Build a descriptor from its JSON form."""
        if not isinstance(data, Mapping):
            raise ValueError("descriptor must be a JSON object")
        annotations = data.get("annotations")
        urls = data.get("urls")
        platform = data.get("platform")
        return cls(
            media_type=data.get("mediaType", "") or "",
            digest=data.get("digest", "") or "",
            size=int(data.get("size", 0) or 0),
            urls=list(urls) if urls is not None else None,
            annotations=dict(annotations) if annotations is not None else None,
            platform=copy.deepcopy(platform) if platform is not None else None,
            artifact_type=data.get("artifactType", "") or "",
        )


class Fetcher(Protocol):
    def fetch(self, desc: Descriptor) -> BinaryIO: ...


def is_image_manifest(desc: Descriptor) -> bool:
    """Tell whether the descriptor points at a Docker or OCI image manifest."""
    return desc.media_type in (MEDIA_TYPE_DOCKER_MANIFEST, MEDIA_TYPE_IMAGE_MANIFEST)


def digest_from_bytes(data: bytes) -> str:
    """Return the sha256 digest string of the given bytes."""
    return "sha256:" + hashlib.sha256(data).hexdigest()


def parse_digest(value: str) -> str:
    """Validate a digest string and return it unchanged."""
    algorithm, sep, encoded = value.partition(":")
    if not sep or not algorithm or not encoded:
        raise InvalidDigestError(f"invalid checksum digest format: {value!r}")
    length = _DIGEST_LENGTHS.get(algorithm)
    if length is None:
        if not _DIGEST_RE.fullmatch(value):
            raise InvalidDigestError(f"invalid checksum digest format: {value!r}")
        raise InvalidDigestError(f"unsupported digest algorithm: {value!r}")
    if len(encoded) != length:
        raise InvalidDigestError(f"invalid checksum digest length: {value!r}")
    if not _HEX_RE.fullmatch(encoded):
        raise InvalidDigestError(f"invalid checksum digest format: {value!r}")
    return value


def content_equal(a: Descriptor, b: Descriptor) -> bool:
    """Tell whether two descriptors identify the same content."""
    return a.digest == b.digest and a.size == b.size and a.media_type == b.media_type


def _verify(desc: Descriptor, data: bytes) -> None:
    if len(data) > desc.size:
        raise ValueError(f"{desc.digest}: trailing data")
    if len(data) < desc.size:
        raise ValueError(f"{desc.digest}: unexpected EOF")
    if digest_from_bytes(data) != desc.digest:
        raise ValueError(f"{desc.digest}: mismatched digest")


def fetch_all(fetcher: Fetcher, desc: Descriptor) -> bytes:
    """Fetch the whole content of a descriptor and verify its size and digest."""
    with contextlib.closing(fetcher.fetch(desc)) as rc:
        data = rc.read()
    _verify(desc, data)
    return data


def _descriptors(items: Any) -> list[Descriptor]:
    return [Descriptor.from_dict(item) for item in items or []]


def _parse_successors(media_type: str, data: bytes) -> list[Descriptor]:
    manifest_types = (
        MEDIA_TYPE_DOCKER_MANIFEST,
        MEDIA_TYPE_IMAGE_MANIFEST,
        MEDIA_TYPE_DOCKER_MANIFEST_LIST,
        MEDIA_TYPE_IMAGE_INDEX,
        MEDIA_TYPE_ARTIFACT_MANIFEST,
    )
    if media_type not in manifest_types:
        return []
    doc = json.loads(data)
    if not isinstance(doc, dict):
        raise ValueError("manifest must be a JSON object")
    nodes: list[Descriptor] = []
    subject = doc.get("subject")
    if media_type == MEDIA_TYPE_DOCKER_MANIFEST:
        nodes.append(Descriptor.from_dict(doc.get("config") or {}))
        nodes.extend(_descriptors(doc.get("layers")))
    elif media_type == MEDIA_TYPE_IMAGE_MANIFEST:
        if subject is not None:
            nodes.append(Descriptor.from_dict(subject))
        nodes.append(Descriptor.from_dict(doc.get("config") or {}))
        nodes.extend(_descriptors(doc.get("layers")))
    elif media_type == MEDIA_TYPE_DOCKER_MANIFEST_LIST:
        nodes.extend(_descriptors(doc.get("manifests")))
    elif media_type == MEDIA_TYPE_IMAGE_INDEX:
        if subject is not None:
            nodes.append(Descriptor.from_dict(subject))
        nodes.extend(_descriptors(doc.get("manifests")))
    else:
        if subject is not None:
            nodes.append(Descriptor.from_dict(subject))
        nodes.extend(_descriptors(doc.get("blobs")))
    return nodes


def default_successors(fetcher: Fetcher, desc: Descriptor) -> list[Descriptor]:
    """Return the nodes a manifest or index points to; empty for other content."""
    if desc.media_type not in (
        MEDIA_TYPE_DOCKER_MANIFEST,
        MEDIA_TYPE_IMAGE_MANIFEST,
        MEDIA_TYPE_DOCKER_MANIFEST_LIST,
        MEDIA_TYPE_IMAGE_INDEX,
        MEDIA_TYPE_ARTIFACT_MANIFEST,
    ):
        return []
    return _parse_successors(desc.media_type, fetch_all(fetcher, desc))


def _key(desc: Descriptor) -> tuple[str, str, int]:
    return (desc.media_type, desc.digest, desc.size)


class MemoryStore:
    """Content-addressable storage held in memory, with tags and a predecessor index."""

    def __init__(self) -> None:
        self._content: dict[tuple[str, str, int], tuple[Descriptor, bytes]] = {}
        self._predecessors: dict[tuple[str, str, int], list[Descriptor]] = {}
        self._tags: dict[str, Descriptor] = {}

    def fetch(self, desc: Descriptor) -> BinaryIO:
        """Return a readable stream over the stored content."""
        try:
            _, data = self._content[_key(desc)]
        except KeyError:
            raise NotFoundError(f"{desc.digest}: not found") from None
        return io.BytesIO(data)

    def push(self, desc: Descriptor, reader: BinaryIO) -> None:
        """Store content read from the reader after verifying it."""
        key = _key(desc)
        if key in self._content:
            raise ValueError(f"{desc.digest}: already exists")
        data = reader.read()
        _verify(desc, data)
        self._content[key] = (copy.deepcopy(desc), data)
        self._index(desc, data)

    def _index(self, desc: Descriptor, data: bytes) -> None:
        # Content that cannot be parsed as a manifest is stored but not indexed.
        try:
            nodes = _parse_successors(desc.media_type, data)
        except ValueError:
            return
        for node in nodes:
            known = self._predecessors.setdefault(_key(node), [])
            if not any(content_equal(p, desc) for p in known):
                known.append(copy.deepcopy(desc))

    def exists(self, desc: Descriptor) -> bool:
        """Tell whether the described content is stored."""
        return _key(desc) in self._content

    def delete(self, desc: Descriptor) -> None:
        """Remove the content, the tags pointing at it and its predecessor edges."""
        key = _key(desc)
        if key not in self._content:
            raise NotFoundError(f"{desc.digest}: not found")
        del self._content[key]
        self._tags = {
            name: tagged for name, tagged in self._tags.items() if _key(tagged) != key
        }
        for nodes in self._predecessors.values():
            nodes[:] = [p for p in nodes if _key(p) != key]

    def predecessors(self, desc: Descriptor) -> list[Descriptor]:
        """Return the stored manifests that point to the descriptor."""
        return [copy.deepcopy(p) for p in self._predecessors.get(_key(desc), [])]

    def tag(self, desc: Descriptor, reference: str) -> None:
        """Attach a tag to stored content."""
        if not reference:
            raise ValueError("missing reference")
        if _key(desc) not in self._content:
            raise NotFoundError(f"{desc.digest}: not found")
        self._tags[reference] = copy.deepcopy(desc)

    def resolve(self, reference: str) -> Descriptor:
        """Resolve a tag or a digest to the descriptor of stored content."""
        if reference in self._tags:
            return copy.deepcopy(self._tags[reference])
        try:
            parse_digest(reference)
        except InvalidDigestError:
            raise NotFoundError(f"{reference}: not found") from None
        for stored, _ in self._content.values():
            if stored.digest == reference:
                return copy.deepcopy(stored)
        raise NotFoundError(f"{reference}: not found")

    def tags(self, last: str = "") -> list[str]:
        """Return the tags sorted lexically, starting after ``last``."""
        return sorted(name for name in self._tags if name > last)
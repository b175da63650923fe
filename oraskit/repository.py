"""Parsing of registry references and repository paths."""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

from oraskit.oci import InvalidDigestError, parse_digest

_REPOSITORY_RE = re.compile(
    r"[a-z0-9]+(?:(?:[._]|__|[-]*)[a-z0-9]+)*(?:/[a-z0-9]+(?:(?:[._]|__|[-]*)[a-z0-9]+)*)*"
)
_TAG_RE = re.compile(r"[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}")


@dataclass(frozen=True)
class Reference:
    """A registry, a repository and an optional tag or digest."""

    registry: str
    repository: str
    reference: str = ""

    def __str__(self) -> str:
        base = f"{self.registry}/{self.repository}"
        if not self.reference:
            return base
        try:
            parse_digest(self.reference)
        except InvalidDigestError:
            return f"{base}:{self.reference}"
        return f"{base}@{self.reference}"


def _validate_registry(registry: str) -> None:
    invalid = ValueError(f"invalid reference: invalid registry {registry!r}")
    if "@" in registry or any(c.isspace() or not c.isprintable() for c in registry):
        raise invalid
    try:
        parts = urlsplit("dummy://" + registry)
    except ValueError:
        raise invalid from None
    if parts.netloc != registry or parts.path or parts.query or parts.fragment:
        raise invalid
    if registry.startswith("["):
        end = registry.find("]")
        rest = registry[end + 1 :] if end != -1 else None
        if rest is None or (rest and not rest.startswith(":")):
            raise invalid
        port = rest[1:]
    else:
        _, _, port = registry.rpartition(":") if ":" in registry else ("", "", "")
    if port and not port.isdigit():
        raise invalid


def parse_reference(raw: str) -> Reference:
    """Parse ``registry/repository[:tag|@digest]`` into a Reference."""
    registry, sep, path = raw.partition("/")
    if not sep:
        raise ValueError("invalid reference: missing repository")
    is_tag = False
    reference = ""
    if "@" in path:
        repository, _, reference = path.partition("@")
        repository = repository.partition(":")[0]
    elif ":" in path:
        repository, _, reference = path.partition(":")
        is_tag = True
    else:
        repository = path
    _validate_registry(registry)
    if not _REPOSITORY_RE.fullmatch(repository):
        raise ValueError(f"invalid reference: invalid repository {repository!r}")
    if reference:
        if is_tag:
            if not _TAG_RE.fullmatch(reference):
                raise ValueError(f"invalid reference: invalid tag {reference!r}")
        else:
            try:
                parse_digest(reference)
            except InvalidDigestError as err:
                raise ValueError(f"invalid reference: invalid digest; {err}") from err
    return Reference(registry=registry, repository=repository, reference=reference)


def parse_repo_path(raw_reference: str) -> tuple[str, str]:
    """Split a registry path into hostname and namespace prefix.

    The namespace ends with ``/`` when present; tags and digests are rejected.
    """
    raw_reference = raw_reference.removesuffix("/")
    if "/" not in raw_reference:
        return raw_reference, ""
    ref = parse_reference(raw_reference)
    if ref.reference:
        raise ValueError("tags or digests should not be provided")
    return ref.registry, ref.repository + "/"
import io
import json

import pytest

from oraskit.manifest import (
    fetch_config,
    fetch_config_desc,
    fetch_manifest,
    match_digest,
    push_manifest,
)
from oraskit.oci import (
    MEDIA_TYPE_ARTIFACT_MANIFEST,
    MEDIA_TYPE_IMAGE_MANIFEST,
    MEDIA_TYPE_UNKNOWN_CONFIG,
    Descriptor,
    MemoryStore,
    NotFoundError,
    digest_from_bytes,
    fetch_all,
)

CONFIG = b"{}"
CONFIG_DIGEST = "sha256:44136fa355b3678a1146ad16f7e8649e94fb4fc21fe77e8310c060f61caaff8a"


def _desc(media_type, data):
    return Descriptor(media_type=media_type, digest=digest_from_bytes(data), size=len(data))


def _manifest_bytes():
    config = _desc(MEDIA_TYPE_UNKNOWN_CONFIG, CONFIG)
    doc = {
        "schemaVersion": 2,
        "mediaType": MEDIA_TYPE_IMAGE_MANIFEST,
        "config": config.to_dict(),
        "layers": [],
    }
    return json.dumps(doc, separators=(",", ":")).encode()


@pytest.fixture
def store():
    s = MemoryStore()
    config = _desc(MEDIA_TYPE_UNKNOWN_CONFIG, CONFIG)
    s.push(config, io.BytesIO(CONFIG))
    manifest = _manifest_bytes()
    mdesc = _desc(MEDIA_TYPE_IMAGE_MANIFEST, manifest)
    s.push(mdesc, io.BytesIO(manifest))
    s.tag(mdesc, "v1")
    artifact = b'{"mediaType":"%s"}' % MEDIA_TYPE_ARTIFACT_MANIFEST.encode()
    adesc = _desc(MEDIA_TYPE_ARTIFACT_MANIFEST, artifact)
    s.push(adesc, io.BytesIO(artifact))
    s.tag(adesc, "art")
    return s


def test_match_digest(store):
    digest = digest_from_bytes(_manifest_bytes())
    assert match_digest(store, "v1", digest) is True
    assert match_digest(store, "v1", CONFIG_DIGEST) is False
    assert match_digest(store, "missing", digest) is False


def test_fetch_config_desc(store):
    desc = fetch_config_desc(store, "v1")
    assert desc.digest == CONFIG_DIGEST
    assert desc.media_type == MEDIA_TYPE_UNKNOWN_CONFIG
    assert desc.size == 2


def test_fetch_config_desc_not_image(store):
    with pytest.raises(ValueError, match="is not an image manifest"):
        fetch_config_desc(store, "art")


def test_fetch_config_content(store):
    out = io.BytesIO()
    fetch_config(store, "v1", out=out)
    assert out.getvalue() == CONFIG


def test_fetch_config_to_file_and_descriptor(store, tmp_path):
    path = tmp_path / "config.json"
    out = io.BytesIO()
    desc = fetch_config(store, "v1", output_path=str(path), output_descriptor=True, out=out)
    assert path.read_bytes() == CONFIG
    assert json.loads(out.getvalue()) == desc.to_dict()


def test_fetch_config_descriptor_only(store):
    out = io.BytesIO()
    fetch_config(store, "v1", output_descriptor=True, out=out)
    assert json.loads(out.getvalue())["digest"] == CONFIG_DIGEST


def test_fetch_config_rejects_stdout_with_descriptor(store):
    with pytest.raises(ValueError, match="cannot be used with"):
        fetch_config(store, "v1", output_path="-", output_descriptor=True)


def test_fetch_config_requires_reference(store):
    with pytest.raises(ValueError):
        fetch_config(store, "", out=io.BytesIO())


def test_fetch_manifest_raw(store):
    out = io.BytesIO()
    desc = fetch_manifest(store, "v1", out=out)
    assert out.getvalue() == _manifest_bytes()
    assert desc.digest == digest_from_bytes(_manifest_bytes())


def test_fetch_manifest_pretty(store):
    out = io.StringIO()
    fetch_manifest(store, "v1", pretty=True, out=out)
    text = out.getvalue()
    assert json.loads(text) == json.loads(_manifest_bytes())
    assert text.startswith("{\n  ")
    assert text.endswith("}\n")


def test_fetch_manifest_descriptor_only(store):
    out = io.BytesIO()
    desc = fetch_manifest(store, "v1", output_descriptor=True, out=out)
    assert json.loads(out.getvalue()) == desc.to_dict()
    assert desc.media_type == MEDIA_TYPE_IMAGE_MANIFEST


def test_fetch_manifest_to_file(store, tmp_path):
    path = tmp_path / "m.json"
    out = io.BytesIO()
    fetch_manifest(store, "v1", output_path=str(path), out=out)
    assert path.read_bytes() == _manifest_bytes()
    assert out.getvalue() == b""


def test_fetch_manifest_not_found(store):
    with pytest.raises(NotFoundError, match="failed to find"):
        fetch_manifest(store, "nope", output_descriptor=True, out=io.BytesIO())
    with pytest.raises(NotFoundError, match="failed to fetch the content of"):
        fetch_manifest(store, "nope", out=io.BytesIO())


def test_fetch_manifest_rejects_stdout_with_descriptor(store):
    with pytest.raises(ValueError, match="cannot be used with"):
        fetch_manifest(store, "v1", output_path="-", output_descriptor=True)


def _write_manifest(tmp_path):
    path = tmp_path / "manifest.json"
    path.write_bytes(_manifest_bytes())
    return path


def test_push_manifest_tags_and_prints(tmp_path):
    target = MemoryStore()
    path = _write_manifest(tmp_path)
    out = io.StringIO()
    desc = push_manifest(target, str(path), "v1", ["a", "b"], out=out)
    assert desc.media_type == MEDIA_TYPE_IMAGE_MANIFEST
    assert fetch_all(target, desc) == _manifest_bytes()
    for tag in ("v1", "a", "b"):
        assert target.resolve(tag).digest == desc.digest
    lines = out.getvalue().splitlines()
    assert lines[0] == "Pushed v1"
    assert "Tagged a" in lines
    assert lines[-1] == f"Digest: {desc.digest}"


def test_push_manifest_by_digest(tmp_path):
    target = MemoryStore()
    path = _write_manifest(tmp_path)
    out = io.StringIO()
    desc = push_manifest(target, str(path), out=out)
    assert target.exists(desc)
    assert target.tags() == []
    assert out.getvalue().splitlines()[0] == f"Pushed {desc.digest}"


def test_push_manifest_existing_is_reported(tmp_path, store):
    path = _write_manifest(tmp_path)
    out = io.StringIO()
    push_manifest(store, str(path), "v1", verbose=True, out=out)
    text = out.getvalue()
    assert text.startswith("Exists ")
    assert "Uploading" not in text


def test_push_manifest_verbose_upload(tmp_path):
    target = MemoryStore()
    path = _write_manifest(tmp_path)
    out = io.StringIO()
    desc = push_manifest(target, str(path), "v1", verbose=True, out=out)
    lines = out.getvalue().splitlines()
    short = desc.digest.split(":")[1][:12]
    assert lines[0] == f"Uploading {short} {MEDIA_TYPE_IMAGE_MANIFEST}"
    assert lines[1] == f"Uploaded  {short} {MEDIA_TYPE_IMAGE_MANIFEST}"


def test_push_manifest_output_descriptor(tmp_path):
    target = MemoryStore()
    path = _write_manifest(tmp_path)
    out = io.StringIO()
    desc = push_manifest(
        target, str(path), "v1", ["extra"], output_descriptor=True, verbose=True, out=out
    )
    assert json.loads(out.getvalue()) == desc.to_dict()
    assert target.resolve("extra").digest == desc.digest


def test_push_manifest_explicit_media_type(tmp_path):
    target = MemoryStore()
    path = tmp_path / "m.json"
    path.write_bytes(b"{}")
    desc = push_manifest(target, str(path), "v1", media_type="application/x-test", out=io.StringIO())
    assert desc.media_type == "application/x-test"
    assert desc.digest == CONFIG_DIGEST


def test_push_manifest_missing_media_type(tmp_path):
    path = tmp_path / "m.json"
    path.write_bytes(b'{"schemaVersion":2}')
    with pytest.raises(ValueError, match="media type is not recognized"):
        push_manifest(MemoryStore(), str(path), "v1", out=io.StringIO())


def test_push_manifest_missing_file():
    with pytest.raises(ValueError, match="missing file name"):
        push_manifest(MemoryStore(), "", "v1", out=io.StringIO())
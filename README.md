# oraskit

`oraskit` is a library for OCI artifacts and the content graphs they make up.
It provides:

- content descriptors, sha256 digests and digest validation
- an in-memory, content-addressable store that supports tags and tracks predecessors
- successor and referrer lookup across a content graph
- preparation of manifest and blob content from files or standard input
- push, fetch and delete operations for manifests and blobs on any target object
- referrer discovery, printed as a table, as JSON or as a tree
- parsing of registry references and repository paths
- helpers for reading lines, building credentials, loading CA certificates and
  redirecting dial addresses

## Installation

```
pip install oraskit
```

To install the test dependencies too:

```
pip install "oraskit[test]"
```

## Command

The package installs one command, which prints version information:

```
oraskit-version
```

It prints `Version`, `Python version` and, if they are set, the git commit and
tree state, with the values lined up in one column.

## Modules

| Module | Contents |
| --- | --- |
| `oraskit.oci` | `Descriptor` (`to_dict`, `from_dict`), `MemoryStore`, `NotFoundError`, `InvalidDigestError`, `digest_from_bytes`, `parse_digest`, `is_image_manifest`, `content_equal`, `fetch_all`, `default_successors`, media type constants |
| `oraskit.lineio` | `read_line`: reads one line from a binary reader and drops a trailing `\r` |
| `oraskit.dialer` | `Dialer`: `add(host, port, ip, ip_port)` sends connections for `host:port` to another address; `dial(network, address)` |
| `oraskit.credential` | `Credential` and `credential(username, password)` |
| `oraskit.certs` | `load_cert_pool(path)`: returns a client `ssl.SSLContext` that trusts the certificates in a PEM file |
| `oraskit.version` | `get_version`, `version_items`, `main` |
| `oraskit.repository` | `Reference`, `parse_reference`, `parse_repo_path` |
| `oraskit.fileprep` | `prepare_manifest_content`, `prepare_blob_content`, `parse_media_type` |
| `oraskit.graph` | `successors`, `referrers`, `find_referrer_predecessors` |
| `oraskit.discover` | `TreeNode`, `discover`, `fetch_all_referrers`, `format_referrers_table`, `referrers_index` |
| `oraskit.manifest` | `push_manifest`, `fetch_manifest`, `fetch_config`, `fetch_config_desc`, `match_digest` |
| `oraskit.blob` | `push_blob`, `fetch_blob` |
| `oraskit.deletion` | `delete_manifest`, `delete_blob` |
| `oraskit.pushing` | `push_artifact`, `pull_successors`, `generate_content_key`, `print_once` |

The push, fetch, delete and discover operations accept any object with the
methods they call (`resolve`, `fetch`, `push`, `exists`, `tag`, `delete`,
`predecessors`, or `referrers`). `MemoryStore` provides all of these except
`referrers`, so the referrer lookup on a `MemoryStore` goes through its
predecessors.

## Examples

Store content, tag it and read it back:

```python
import io
from oraskit.oci import Descriptor, MemoryStore, digest_from_bytes, fetch_all

store = MemoryStore()
data = b"hello world"
desc = Descriptor(media_type="text/plain", digest=digest_from_bytes(data), size=len(data))
store.push(desc, io.BytesIO(data))
store.tag(desc, "v1")
fetch_all(store, store.resolve("v1"))
# b'hello world'
```

Split a registry path into a hostname and a namespace:

```python
from oraskit.repository import parse_repo_path

parse_repo_path("localhost:5000/showcase/beta/")
# ('localhost:5000', 'showcase/beta/')
```

Read one line from a binary stream:

```python
import io
from oraskit.lineio import read_line

read_line(io.BytesIO(b"foo\r\nbar"))
# b'foo'
```

Check whether a descriptor points at an image manifest:

```python
from oraskit.oci import Descriptor, is_image_manifest

desc = Descriptor.from_dict({
    "mediaType": "application/vnd.oci.image.manifest.v1+json",
    "digest": "sha256:2e0e0fe1fb3edbcdddad941c90d2b51e25a6bcd593e82545441a216de7bfa834",
    "size": 474,
})
is_image_manifest(desc)
# True
```

Build a credential. If the username is empty, the password is used as a refresh token:

```python
from oraskit.credential import credential

password = "password"
credential("username", password)
```

Print the version:

```python
from oraskit.version import get_version

get_version()
# '1.0.0+unreleased'
```

## What the package does not do

- It does not include an HTTP client for remote registries. All operations run
  against Python objects you pass in, such as `MemoryStore`.
- It has no login or logout and does not store credentials. `credential` only
  builds a `Credential` value.
- It does not cache content from one target into another.
- It does not list the tags of a repository or filter them, and it does not
  list repositories.
- It does not log HTTP requests or responses.
- `oraskit-version` is its only command. The other operations are library
  functions.

## Running the tests

```
pytest
```
"""Tools for OCI artifacts: descriptors, an in-memory store, content graphs, referrers, manifests and blobs."""

__version__ = "1.0.0"
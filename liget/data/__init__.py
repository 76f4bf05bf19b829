"""
Package representations used by the client.

This package is responsible for:
* Holding catalog metadata for a package before its content is available.
* Reading materialized packages from .nupkg archives.
"""

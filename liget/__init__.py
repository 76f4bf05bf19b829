"""
Client-side core for working with packages from a remote catalog.

* liget.storage  - file systems addressed by paths relative to a fixed root.
* liget.domain   - versions, frameworks, dependency descriptors and models.
* liget.data     - catalog-backed package metadata and local package archives.
* liget.services - hashing and catalog access.
* liget.core     - configuration, logging setup and shared instances.
"""

__version__ = "0.1.0"

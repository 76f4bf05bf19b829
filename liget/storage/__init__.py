"""Root-relative file system access."""

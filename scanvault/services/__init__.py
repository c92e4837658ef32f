"""Service entrypoints for scanvault."""

__all__ = ["scan_api", "scan_session"]

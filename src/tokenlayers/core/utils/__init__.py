"""Shared helpers (merging, atomic I/O)."""

"""Stdlib logging setup and the audit JSONL sink."""

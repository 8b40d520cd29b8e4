"""Shared helpers for the tokenlayers test-suite."""

"""Top-level tokenlayers commands (auto-discovered)."""

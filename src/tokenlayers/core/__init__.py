"""Core services for layered design-token resolution."""

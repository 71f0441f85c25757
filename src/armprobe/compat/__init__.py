"""ARM64 compatibility rules and classification."""

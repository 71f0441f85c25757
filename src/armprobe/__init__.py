"""armprobe: host software inventory and ARM64/Graviton readiness detection."""

__version__ = "0.1.0"

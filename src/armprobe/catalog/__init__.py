"""Static catalog of known server applications."""

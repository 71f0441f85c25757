"""SQLite persistence for detection runs."""

"""Detection engine and its output records."""

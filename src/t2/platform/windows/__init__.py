"""Windows platform implementations."""

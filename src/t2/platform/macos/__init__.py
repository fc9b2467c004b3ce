"""macOS platform implementations."""

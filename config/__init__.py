"""Worker configuration."""

"""Storage backends for metadata definitions and build nodes."""

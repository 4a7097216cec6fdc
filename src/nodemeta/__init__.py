"""nodemeta - metadata definitions and per-node metadata trees for CI build nodes."""

__version__ = "1.0.0"

"""Metadata data model: value trees, definitions and the node property."""

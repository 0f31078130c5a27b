"""dumpdiff: checksum-based comparison of two directory dumps."""

__version__ = "0.3.0"

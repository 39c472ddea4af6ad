"""Typed value trees with JSON and MessagePack serialization and fast number parsing."""

__version__ = "0.1.0"
__all__ = ["hexfloat", "mpack", "node", "serialize", "strtonum", "tables"]
"""Find out what takes up space in a MongoDB oplog."""

__version__ = "0.1.0"

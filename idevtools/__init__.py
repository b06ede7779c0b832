"""Message codecs and request/response helpers for iOS device services."""

__version__ = "0.1.0"
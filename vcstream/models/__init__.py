"""Data models for vcstream."""

from .records import ConfigRecord


__all__ = ["ConfigRecord"]

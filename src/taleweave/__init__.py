"""Taleweave: a data-driven interactive fiction runtime."""

__version__ = "0.1.0"

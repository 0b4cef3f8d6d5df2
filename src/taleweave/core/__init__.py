"""Shared type aliases."""

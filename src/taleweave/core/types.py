"""Shared type aliases for the core and domain layers."""
from typing import Literal

EngineStatus = Literal["awaiting_choice", "ended", "error"]

__all__ = ["EngineStatus"]

"""Persistence layer."""

from .db import Database

__all__ = ["Database"]

"""Deterministic identifier derivation."""

from .deterministic_id import derive_id

__all__ = ["derive_id"]

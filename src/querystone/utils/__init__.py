"""Utility helpers for querystone."""

from querystone.utils.decorators import traced

__all__ = ["traced"]

"""Utility package for tokenscope.

Shared helpers that do not belong to the store, chain or API layers.
"""

from .text import numeric_sort_key, param_case

__all__ = ["numeric_sort_key", "param_case"]

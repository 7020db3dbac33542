"""
Yield protocol adapters
"""

from .base import AdapterHandle, YieldAdapter
from .simple_yield import SimpleYieldAdapter

__all__ = [
    "AdapterHandle",
    "YieldAdapter",
    "SimpleYieldAdapter",
]

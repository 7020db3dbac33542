"""
State management for the MiniYield vault shell
"""

from .token_ledger import TokenLedger

__all__ = [
    "TokenLedger",
]

"""
Transaction handles.
"""

from .transaction import Transaction

__all__ = ["Transaction"]

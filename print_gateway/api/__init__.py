"""
API REST do gateway de impressão
"""

from .server import PrintServerAPI

__all__ = ['PrintServerAPI']

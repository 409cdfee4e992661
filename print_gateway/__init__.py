"""
Gateway web de impressão para servidores CUPS via IPP
"""

__version__ = "1.0.0"

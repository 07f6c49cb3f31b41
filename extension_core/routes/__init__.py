"""
HTTP routes хоста расширений.
"""

from .extensions import router as extensions_router

__all__ = ['extensions_router']

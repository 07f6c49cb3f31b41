"""
Встроенные расширения хоста.
"""

from .core import create_core_extension
from .gallery import create_gallery_extension

__all__ = ['create_core_extension', 'create_gallery_extension']

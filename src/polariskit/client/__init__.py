"""
Backend adapters for the catalog service.
"""

from .base import CatalogBackend
from .rest import PolarisRestClient

__all__ = [
    'CatalogBackend',
    'PolarisRestClient',
]

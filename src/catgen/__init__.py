"""
This package resolves the files and hardware id of a Windows driver package
from its INF descriptor, and builds the package's signed catalog from them.
"""

from .models import CatalogRequest, ResolvedResult, ResolveOptions
from .resolver import DescriptorResolver, resolve_descriptor

__all__ = [
    "CatalogRequest",
    "DescriptorResolver",
    "ResolveOptions",
    "ResolvedResult",
    "resolve_descriptor",
]

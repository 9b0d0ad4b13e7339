"""
The `inf` sub-package contains modules for loading driver-package descriptors
(INF files).

This includes:
- Decoding descriptor text and splitting it into sections, keys and fields.
- Case-insensitive, cursor-based lookup over the loaded sections.
"""

from .descriptor import Descriptor

__all__ = ["Descriptor"]

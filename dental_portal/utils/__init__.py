"""
Utils package initialization.
"""

from dental_portal.utils.file_utils import has_allowed_extension, format_file_size

__all__ = [
    "has_allowed_extension",
    "format_file_size",
]

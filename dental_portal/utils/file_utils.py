"""
File handling utilities.
"""

from typing import Iterable


def has_allowed_extension(filename: str, allowed_extensions: Iterable[str]) -> bool:
    """
    Check the file name against allowed extensions.

    The comparison is case-sensitive: ``scan.DCM`` is not a ``.dcm`` file.

    Args:
        filename: Name of the file as supplied
        allowed_extensions: Extensions including the leading dot

    Returns:
        True if the name ends with one of the extensions
    """
    return any(filename.endswith(ext) for ext in allowed_extensions)


def format_file_size(size_bytes: float) -> str:
    """
    Format file size in human-readable format.

    Args:
        size_bytes: File size in bytes

    Returns:
        Formatted string (e.g., '2.45 MB')
    """
    if size_bytes < 1024:
        return f"{int(size_bytes)} B"
    for unit in ["KB", "MB", "GB"]:
        size_bytes /= 1024.0
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
    return f"{size_bytes:.2f} TB"

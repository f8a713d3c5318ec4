"""Result export helpers."""

from .export import OUTPUT_FILES, export_results, hash_file

__all__ = ["OUTPUT_FILES", "export_results", "hash_file"]

"""
Task modules for batch processing.

This package contains the translation task implementations.
"""

from . import translate_file, translate_objects

__all__ = ["translate_objects", "translate_file"]

"""
Ferry worker package.

Batch translation tasks run by the command-line application.
"""

__version__ = "0.1.0"

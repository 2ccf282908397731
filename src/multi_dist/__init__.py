"""
multi-dist: configuration resolution and CI planning for multi-package releases.
"""

__version__ = "0.1.0"

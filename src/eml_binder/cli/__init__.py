"""
CLI module for message extraction and PDF merging.
"""

from eml_binder.cli.main import main

__all__ = ["main"]

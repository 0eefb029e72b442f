"""Extraction of mail messages and their attachments, and binding of PDF attachments."""

from .version import API_VERSION

__version__ = API_VERSION

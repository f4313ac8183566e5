"""
Media Processing Layer.

This package is responsible for everything that touches manifest text and
container bytes: playlist parsing, box-level filtering, reassembly, and
integrity validation.
"""

from .integrity import FileIntegrityChecker
from .manifest_parser import parse
from .reassembler import ContainerReassembler

__all__ = ["ContainerReassembler", "FileIntegrityChecker", "parse"]

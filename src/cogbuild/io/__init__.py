"""
cogbuild IO Module

- FileSystem: Abstract file system interface
- DiskFileSystem: Local disk file system (fsspec "file")
- MemoryFileSystem: In-memory file system (fsspec "memory"), mostly for tests

Usage:
    from cogbuild.io import DiskFileSystem

    fs = DiskFileSystem()
    content = fs.read_text("cog.yaml")
"""

from .fs import (
    FileSystem,
    GenericFileSystem,
    DiskFileSystem,
    MemoryFileSystem,
    wrap_io_error,
)

__all__ = [
    'FileSystem',
    'GenericFileSystem',
    'DiskFileSystem',
    'MemoryFileSystem',
    'wrap_io_error',
]

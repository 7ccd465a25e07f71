from abc import ABC, abstractmethod
from functools import wraps
from pathlib import PurePath
from typing import List, Tuple, Union, override
import logging
import posixpath

import fsspec
from fsspec.implementations.local import make_path_posix

from ..exceptions import (
    CogIOError,
    CogPathExistsError,
    CogPathNotFoundError,
    CogNotADirectoryError,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, PurePath]


def wrap_io_error(func):
    """Decorator to wrap OS errors into cogbuild exceptions."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FileExistsError as e:
            raise CogPathExistsError(e) from e
        except FileNotFoundError as e:
            raise CogPathNotFoundError(e) from e
        except NotADirectoryError as e:
            raise CogNotADirectoryError(e) from e
        except OSError as e:
            raise CogIOError(e) from e

    return wrapper

# --------------------
#
# Abstract FileSystem
#
# --------------------

class FileSystem(ABC):
    """cogbuild File System Abstract Base Class"""

    @abstractmethod
    def read_text(self, path: PathLike) -> str:
        """Read text from a file"""
        pass

    @abstractmethod
    def read_bytes(self, path: PathLike) -> bytes:
        """Read bytes from a file"""
        pass

    @abstractmethod
    def write_text(self, path: PathLike, content: str):
        """Write text to a file, creating parent directories"""
        pass

    @abstractmethod
    def write_bytes(self, path: PathLike, content: bytes):
        """Write bytes to a file, creating parent directories"""
        pass

    @abstractmethod
    def exists(self, path: PathLike) -> bool:
        """Check if a path exists"""
        pass

    @abstractmethod
    def is_dir(self, path: PathLike) -> bool:
        """Check if a path is a directory"""
        pass

    @abstractmethod
    def mkdir(self, path: PathLike, parents: bool = False, exist_ok: bool = False):
        """Create a directory"""
        pass

    @abstractmethod
    def rmtree(self, path: PathLike):
        """Remove a directory recursively"""
        pass

    @abstractmethod
    def walk_files(self, root: PathLike) -> List[Tuple[str, int]]:
        """(path relative to root, size in bytes) for every file under root, sorted by path"""
        pass


# --------------------
#
# Generic FileSystem
#
# --------------------

class GenericFileSystem(FileSystem, ABC):
    """Generic File System base class for fsspec implementations"""

    def __init__(self, fs_instance, name=None):
        self.fs = fs_instance
        self.name = name or f"{type(fs_instance).__name__}"

    @abstractmethod
    def path2str(self, path: PathLike) -> str:
        """Convert a path to the string form understood by the fsspec instance"""
        pass

    @override
    @wrap_io_error
    def read_text(self, path: PathLike, encoding: str = "utf-8") -> str:
        logger.debug(f"[{self.name}] Reading from: {path}")
        with self.fs.open(self.path2str(path), "r", encoding=encoding) as f:
            return f.read()

    @override
    @wrap_io_error
    def read_bytes(self, path: PathLike) -> bytes:
        logger.debug(f"[{self.name}] Reading bytes from: {path}")
        with self.fs.open(self.path2str(path), "rb") as f:
            return f.read()

    @override
    @wrap_io_error
    def write_text(self, path: PathLike, content: str, encoding: str = "utf-8"):
        logger.debug(f"[{self.name}] Writing to: {path}")
        target = self.path2str(path)
        self.fs.makedirs(posixpath.dirname(target), exist_ok=True)
        with self.fs.open(target, "w", encoding=encoding) as f:
            f.write(content)

    @override
    @wrap_io_error
    def write_bytes(self, path: PathLike, content: bytes):
        logger.debug(f"[{self.name}] Writing bytes to: {path}")
        target = self.path2str(path)
        self.fs.makedirs(posixpath.dirname(target), exist_ok=True)
        with self.fs.open(target, "wb") as f:
            f.write(content)

    @override
    def exists(self, path: PathLike) -> bool:
        return self.fs.exists(self.path2str(path))

    @override
    def is_dir(self, path: PathLike) -> bool:
        return self.fs.isdir(self.path2str(path))

    @override
    @wrap_io_error
    def mkdir(self, path: PathLike, parents: bool = False, exist_ok: bool = False):
        target = self.path2str(path)
        if parents:
            self.fs.makedirs(target, exist_ok=exist_ok)
            return
        if exist_ok and self.is_dir(path):
            return
        self.fs.mkdir(target, create_parents=False)

    @override
    @wrap_io_error
    def rmtree(self, path: PathLike):
        if self.exists(path):
            self.fs.rm(self.path2str(path), recursive=True)
        else:
            logger.debug(f"Path {path} does not exist, skipping rmtree.")

    @override
    @wrap_io_error
    def walk_files(self, root: PathLike) -> List[Tuple[str, int]]:
        base = self.path2str(root).rstrip("/") or "/"
        found = self.fs.find(base, detail=True)
        return [
            (posixpath.relpath(full_path, base), int(info.get("size") or 0))
            for full_path, info in sorted(found.items())
            if info.get("type") == "file"
        ]


class DiskFileSystem(GenericFileSystem):
    """Local disk file system using fsspec"""

    def __init__(self):
        super().__init__(fsspec.filesystem("file"), name="fileFS")

    @override
    def path2str(self, path: PathLike) -> str:
        return make_path_posix(str(path))


class MemoryFileSystem(GenericFileSystem):
    """
    in-memory filesystem using fsspec

    The fsspec memory store is shared by every instance in the process,
    keep roots unique when using it in tests.
    """

    def __init__(self):
        super().__init__(fsspec.filesystem("memory"), name="memoryFS")

    @override
    def path2str(self, path: PathLike) -> str:
        path_str = PurePath(path).as_posix()
        return path_str if path_str.startswith("/") else f"/{path_str}"

"""
Build staging area.

Ephemeral build inputs (the cog wheel, the rendered requirements.txt) are
written under <dir>/.cog/tmp/build<digits> so they are inside the Docker
build context and can be COPY'd in. The directory lives until cleanup().
"""

import logging
import secrets
from dataclasses import dataclass
from pathlib import PurePath, PurePosixPath
from typing import Optional, Tuple

from .. import constants
from ..io.fs import FileSystem, DiskFileSystem, PathLike
from ..exceptions import CogIOError, CogPathExistsError, StagingError

logger = logging.getLogger(__name__)

# mkdtemp gives up after this many name collisions as well
MAX_NAME_ATTEMPTS = 100


@dataclass(frozen=True)
class StagedFile:
    """A file written to the staging area and how the Dockerfile picks it up."""
    name: str
    container_path: str
    instructions: Tuple[str, ...]


class StagingArea:
    """
    A private scratch directory inside the build context.

    Use `StagingArea.create()` to allocate one. The caller owns it and must
    call `cleanup()` exactly once when done, whether generation succeeded or not.
    """

    def __init__(self, fs: FileSystem, path: PurePath, relative_path: str):
        self.fs = fs
        self.path = path
        # path relative to the build context, this is what COPY sees
        self.relative_path = relative_path

    @classmethod
    def create(cls, base_dir: PathLike, fs: Optional[FileSystem] = None) -> 'StagingArea':
        fs = fs or DiskFileSystem()
        root = PurePath(base_dir) / constants.STAGING_ROOT
        try:
            fs.mkdir(root, parents=True, exist_ok=True)
        except CogIOError as e:
            raise StagingError(f"Failed to create staging root {root}: {e}") from e

        for _ in range(MAX_NAME_ATTEMPTS):
            name = f"{constants.STAGING_PREFIX}{secrets.randbelow(10 ** 9):09d}"
            path = root / name
            try:
                fs.mkdir(path)
            except CogPathExistsError:
                continue
            except CogIOError as e:
                raise StagingError(f"Failed to create staging directory in {root}: {e}") from e
            relative = (PurePosixPath(constants.STAGING_ROOT) / name).as_posix()
            logger.debug(f"Created staging directory {path}")
            return cls(fs, path, relative)

        raise StagingError(f"Failed to allocate a unique staging directory in {root}")

    def write(self, name: str, content: bytes) -> StagedFile:
        """
        Write `content` to `name` inside the staging directory.

        Returns the COPY instruction that brings it into the image, and the
        path it will have inside the container.
        """
        rel = PurePosixPath(name)
        if not name or rel.is_absolute() or '..' in rel.parts:
            raise StagingError(f"Failed to write {name}: staging names must be relative paths inside the staging directory")
        try:
            self.fs.write_bytes(self.path / rel, content)
        except CogIOError as e:
            raise StagingError(f"Failed to write {name}: {e}") from e

        container_path = f"{constants.STAGING_CONTAINER_DIR}/{rel.as_posix()}"
        copy = f"COPY {self.relative_path}/{rel.as_posix()} {container_path}"
        logger.debug(f"Staged {name} ({len(content)} bytes) as {container_path}")
        return StagedFile(name=rel.as_posix(), container_path=container_path, instructions=(copy,))

    def cleanup(self):
        """Remove the staging directory and everything in it."""
        try:
            self.fs.rmtree(self.path)
        except CogIOError as e:
            raise StagingError(f"Failed to clean up {self.path}: {e}") from e
        logger.debug(f"Removed staging directory {self.path}")

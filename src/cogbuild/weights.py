"""
Default model weight discovery.

Walks the build context and picks out large files that look like model
weights, so the Dockerfile generator can copy them into their own layer.
"""

import logging
from pathlib import PurePosixPath
from typing import List, Set, Tuple

from . import constants
from .io.fs import FileSystem, PathLike
from .protocols import FileWalker

logger = logging.getLogger(__name__)


def make_walker(fs: FileSystem, root: PathLike) -> FileWalker:
    """Bind a filesystem and a build context root into a FileWalker."""
    def walker():
        return fs.walk_files(root)
    return walker


def _is_hidden(parts: Tuple[str, ...]) -> bool:
    return any(part.startswith('.') for part in parts)


def find_weights(walker: FileWalker) -> Tuple[List[str], List[str]]:
    """
    Classify the walked tree into weight directories and weight files.

    A file is a weight when it has a model suffix and is at least
    WEIGHT_SIZE_THRESHOLD bytes. Weights at the context root are returned as
    files. Nested weights are grouped under their top-level directory, unless
    that directory also holds code, in which case they are listed one by one.

    Returns:
        (directories, files), both sorted
    """
    weight_files: List[str] = []
    code_dirs: Set[str] = set()

    for rel_path, size in walker():
        path = PurePosixPath(rel_path)
        if _is_hidden(path.parts):
            continue
        suffix = path.suffix.lower()
        if suffix in constants.CODE_FILE_SUFFIXES:
            if len(path.parts) > 1:
                code_dirs.add(path.parts[0])
            continue
        if suffix in constants.MODEL_FILE_SUFFIXES and size >= constants.WEIGHT_SIZE_THRESHOLD:
            logger.debug(f"Found weight file '{rel_path}' ({size} bytes)")
            weight_files.append(path.as_posix())

    dirs: Set[str] = set()
    files: List[str] = []
    for rel_path in weight_files:
        parts = PurePosixPath(rel_path).parts
        if len(parts) == 1 or parts[0] in code_dirs:
            files.append(rel_path)
        else:
            dirs.add(parts[0])

    logger.debug(f"Weight discovery: {len(dirs)} dir(s), {len(files)} file(s)")
    return sorted(dirs), sorted(files)

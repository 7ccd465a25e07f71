"""
Weight partitioning.

Model weights are built into their own image so Docker can cache and ship
that (large, rarely changing) layer independently of the application code.
"""

import logging
import posixpath
from dataclasses import dataclass
from typing import Tuple

from .. import constants
from ..protocols import FileWalker, WeightsFinder
from ..exceptions import CogIOError, WeightsError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightSet:
    """Weight paths relative to the build context, as classified once."""
    dirs: Tuple[str, ...] = ()
    files: Tuple[str, ...] = ()

    @property
    def paths(self) -> Tuple[str, ...]:
        return self.dirs + self.files

    def __bool__(self) -> bool:
        return bool(self.dirs or self.files)


@dataclass(frozen=True)
class WeightsPlan:
    """The weights-only Dockerfile and the classification it was built from."""
    dockerfile: str
    weights: WeightSet


def source_path(path: str) -> str:
    """Where a context-relative path lives inside the image."""
    return posixpath.join(constants.SOURCE_ROOT, path)


def weights_dockerfile(weights: WeightSet) -> str:
    contents = f"{constants.DOCKERFILE_SYNTAX}\nFROM scratch\n"
    for path in weights.paths:
        contents += f"\nCOPY {path} {source_path(path)}"
    return contents


def partition_weights(finder: WeightsFinder, walker: FileWalker) -> WeightsPlan:
    """
    Classify the build context once and render the weights-only Dockerfile.

    Raises:
        WeightsError: if classification fails
    """
    try:
        dirs, files = finder(walker)
    except (CogIOError, OSError) as e:
        raise WeightsError(f"Failed to find model weights: {e}") from e

    weights = WeightSet(dirs=tuple(dirs), files=tuple(files))
    logger.info(f"Found {len(weights.dirs)} weight dir(s) and {len(weights.files)} weight file(s)")
    return WeightsPlan(dockerfile=weights_dockerfile(weights), weights=weights)

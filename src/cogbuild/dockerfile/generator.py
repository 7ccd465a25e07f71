"""
Dockerfile generator.

Assembles the Dockerfile for a cog model from its build configuration, in
one of two modes:

- inline: a single Dockerfile that copies the whole context, weights included
- isolated weights: a weights-only Dockerfile (built and tagged by the caller
  as `<image>-weights` first), a main Dockerfile that copies the weights out
  of that image with `COPY --from=weights --link`, and a .dockerignore that
  keeps the weights out of the main build context

The order of the instructions is `PLAN_ORDER`; both modes walk it.
"""

import logging
import platform
import sys
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import PurePosixPath
from typing import Optional

from .. import constants
from ..io.fs import FileSystem, DiskFileSystem, PathLike
from ..protocols import BuildConfigProtocol, WeightsFinder
from ..weights import find_weights, make_walker
from ..exceptions import PayloadMissingError, StagingError, WeightsError
from . import fragments
from .ignore import make_dockerignore
from .staging import StagedFile, StagingArea
from .weights import WeightSet, WeightsPlan, partition_weights, source_path

logger = logging.getLogger(__name__)


class Stage(Enum):
    """A named block of the generated Dockerfile."""
    SYNTAX = "syntax"
    WEIGHTS_STAGE = "weights_stage"
    TINI_STAGE = "tini_stage"
    BASE_IMAGE = "base_image"
    PREAMBLE = "preamble"
    INSTALL_TINI = "install_tini"
    INSTALL_PYTHON = "install_python"
    INSTALL_COG = "install_cog"
    APT_INSTALLS = "apt_installs"
    PIP_INSTALLS = "pip_installs"
    RUN_COMMANDS = "run_commands"
    WEIGHTS_COPY = "weights_copy"
    SERVE = "serve"
    COPY_CONTEXT = "copy_context"


PLAN_ORDER = (
    Stage.SYNTAX,
    Stage.WEIGHTS_STAGE,
    Stage.TINI_STAGE,
    Stage.BASE_IMAGE,
    Stage.PREAMBLE,
    Stage.INSTALL_TINI,
    Stage.INSTALL_PYTHON,
    Stage.INSTALL_COG,
    Stage.APT_INSTALLS,
    Stage.PIP_INSTALLS,
    Stage.RUN_COMMANDS,
    Stage.WEIGHTS_COPY,
    Stage.SERVE,
    Stage.COPY_CONTEXT,
)

# Only emitted when weights are built as a separate image
ISOLATED_STAGES = frozenset({Stage.WEIGHTS_STAGE, Stage.WEIGHTS_COPY})


@dataclass(frozen=True)
class BuildPlan:
    """Everything `docker build` needs for one model image."""
    dockerfile: str
    weights_dockerfile: Optional[str] = None
    dockerignore: Optional[str] = None


def host_os() -> str:
    return sys.platform


def host_arch() -> str:
    machine = platform.machine().lower()
    return constants.ARCH_ALIASES.get(machine, machine)


def load_embedded_wheel() -> bytes:
    """Read the cog wheel shipped as package data by the release build."""
    resource = resources.files("cogbuild.resources").joinpath(constants.COG_WHEEL_FILENAME)
    if not resource.is_file():
        raise PayloadMissingError(
            f"No embedded {constants.COG_WHEEL_FILENAME} in cogbuild.resources, pass the wheel explicitly."
        )
    return resource.read_bytes()


class Generator:
    """
    Generates the Dockerfile (and friends) for one model directory.

    The staging directory is created as soon as the generator is, and the
    caller must call `cleanup()` once it is done, on success and failure
    alike. Plans may be generated any number of times in between.
    """

    def __init__(
        self,
        config: BuildConfigProtocol,
        dir: PathLike,
        *,
        wheel: Optional[bytes] = None,
        fs: Optional[FileSystem] = None,
        finder: WeightsFinder = find_weights,
        target_os: Optional[str] = None,
        target_arch: Optional[str] = None,
    ):
        self.config = config
        self.dir = dir
        self.fs = fs or DiskFileSystem()
        self.target_os = target_os or host_os()
        self.target_arch = target_arch or host_arch()
        self._wheel = wheel
        self._finder = finder
        self._walker = make_walker(self.fs, dir)
        self.staging = StagingArea.create(dir, self.fs)
        logger.debug(
            f"Generator for '{dir}' targeting {self.target_os}/{self.target_arch}, "
            f"staging in {self.staging.relative_path}"
        )

    def __enter__(self) -> 'Generator':
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.cleanup()
        except StagingError as e:
            if exc_type is None:
                raise
            # keep the error that is already propagating
            logger.error(f"Cleanup after a failed generation also failed: {e}")

    @property
    def wheel(self) -> bytes:
        if self._wheel is None:
            self._wheel = load_embedded_wheel()
        return self._wheel

    def stage_file(self, name: str, content: bytes) -> StagedFile:
        """Put an extra file into the staging directory for the caller's own COPY lines."""
        if PurePosixPath(name).as_posix() in constants.MANAGED_STAGING_FILES:
            raise StagingError(f"'{name}' is managed by the generator and cannot be staged")
        return self.staging.write(name, content)

    def partition_weights(self) -> WeightsPlan:
        """Classify the model weights in `dir` and render the weights-only Dockerfile."""
        return partition_weights(self._finder, self._walker)

    def generate_base(self) -> str:
        """The shared Dockerfile body, without the final context copy."""
        return self._assemble(isolate=False, copy_context=False)

    def generate_without_separate_weights(self) -> str:
        """A Dockerfile that doesn't write model weights to a separate layer."""
        return self._assemble(isolate=False)

    def generate(self, image_name: str, weights: Optional[WeightsPlan] = None) -> BuildPlan:
        """
        Generate the isolated-weights build.

        Args:
            image_name: The model image name. The weights image is expected
                to be tagged `<image_name>-weights` before the main build runs.
            weights: A previous `partition_weights()` result. When given, the
                context is not classified again and the output is identical
                to the earlier call's.
        """
        if weights is None:
            try:
                weights = self.partition_weights()
            except WeightsError as e:
                raise WeightsError(f"Failed to generate Dockerfile for model weights files: {e}") from e

        dockerfile = self._assemble(isolate=True, image_name=image_name, weights=weights.weights)
        return BuildPlan(
            dockerfile=dockerfile,
            weights_dockerfile=weights.dockerfile,
            dockerignore=make_dockerignore(weights.weights.dirs, weights.weights.files),
        )

    def cleanup(self):
        self.staging.cleanup()

    def _assemble(
        self,
        isolate: bool,
        image_name: Optional[str] = None,
        weights: Optional[WeightSet] = None,
        copy_context: bool = True,
    ) -> str:
        blocks = []
        for stage in PLAN_ORDER:
            if stage in ISOLATED_STAGES and not isolate:
                continue
            if stage is Stage.COPY_CONTEXT and not copy_context:
                continue
            block = self._render(stage, image_name, weights)
            if block:
                blocks.append(block)
            else:
                logger.debug(f"Stage '{stage.value}' is empty, omitted")
        return "\n".join(blocks)

    def _render(self, stage: Stage, image_name: Optional[str], weights: Optional[WeightSet]) -> str:
        config = self.config
        match stage:
            case Stage.SYNTAX:
                return constants.DOCKERFILE_SYNTAX
            case Stage.WEIGHTS_STAGE:
                return f"FROM {image_name}{constants.WEIGHTS_IMAGE_SUFFIX} AS {constants.WEIGHTS_STAGE}"
            case Stage.TINI_STAGE:
                return fragments.tini_stage()
            case Stage.BASE_IMAGE:
                return f"FROM {fragments.base_image(config)}"
            case Stage.PREAMBLE:
                return fragments.preamble()
            case Stage.INSTALL_TINI:
                return fragments.install_tini()
            case Stage.INSTALL_PYTHON:
                return fragments.install_python_cuda(config) if config.gpu else ""
            case Stage.INSTALL_COG:
                return fragments.install_cog(self.staging, self.wheel)
            case Stage.APT_INSTALLS:
                return fragments.apt_installs(config)
            case Stage.PIP_INSTALLS:
                return fragments.pip_installs(config, self.staging, self.target_os, self.target_arch)
            case Stage.RUN_COMMANDS:
                return fragments.run_commands(config)
            case Stage.WEIGHTS_COPY:
                return "\n".join(
                    f"COPY --from={constants.WEIGHTS_STAGE} --link {source_path(path)} {source_path(path)}"
                    for path in (weights.paths if weights else ())
                )
            case Stage.SERVE:
                return fragments.serve()
            case Stage.COPY_CONTEXT:
                return fragments.copy_context()

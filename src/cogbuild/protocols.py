"""
cogbuild Protocol Definitions

Protocols are the foundation layer with zero dependencies on other cogbuild
modules. The Dockerfile generator is written against these, not against
`cogbuild.config.Config`, so any validated configuration object will do.
"""

from typing import Callable, Iterable, List, Protocol, Sequence, Tuple, runtime_checkable


# ============================================================================
# Configuration Protocols
# ============================================================================

@runtime_checkable
class MountProtocol(Protocol):
    """A mount attached to a single run step."""

    type: str
    id: str
    target: str


@runtime_checkable
class RunItemProtocol(Protocol):
    """A single `build.run` step."""

    command: str
    mounts: Sequence[MountProtocol]


@runtime_checkable
class BuildConfigProtocol(Protocol):
    """
    The read-only view of a build configuration consumed by the generator.
    """

    gpu: bool
    python_version: str
    system_packages: List[str]
    run: List[RunItemProtocol]
    pre_install: List[str]

    def python_requirements_for_arch(self, target_os: str, target_arch: str) -> str:
        """
        Resolve pip requirements text for a target platform.

        Raises:
            ConfigError: if the requirements cannot be resolved
        """
        ...

    def cuda_base_image_tag(self) -> str:
        """
        Resolve the CUDA base image for GPU builds.

        Raises:
            ConfigError: if no base image matches the configuration
        """
        ...


# ============================================================================
# Weight discovery
# ============================================================================

# Yields (path relative to the build context, size in bytes) for every file.
FileWalker = Callable[[], Iterable[Tuple[str, int]]]

# Classifies a walked tree into (weight directories, weight files).
WeightsFinder = Callable[[FileWalker], Tuple[List[str], List[str]]]

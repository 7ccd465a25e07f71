"""
cogbuild

Generates the Dockerfile and .dockerignore that package a cog model into an
image serving predictions over HTTP.

Main modules:
- dockerfile: Generator, fragment builders, staging area, weight partitioning
- config: cog.yaml loading and validation
- weights: default model weight discovery
- io: File system access
- utils: Logging setup

Quick start example:
```python
from cogbuild import Config, Generator

config = Config("cog.yaml")
generator = Generator(config, ".", wheel=wheel_bytes)
try:
    plan = generator.generate("r8.im/me/model")
finally:
    generator.cleanup()
```
"""

__version__ = "0.1.0"

from .protocols import BuildConfigProtocol, FileWalker, WeightsFinder
from .config import Config, ConfigModel, BuildModel, RunItem, MountItem
from .dockerfile import Generator, BuildPlan, StagingArea, WeightSet, WeightsPlan, make_dockerignore
from .weights import find_weights
from .io import FileSystem, DiskFileSystem, MemoryFileSystem
from .exceptions import (
    CogBuildError,
    ConfigError,
    ConfigValidationError,
    BuildError,
    RunCommandError,
    CogIOError,
    StagingError,
    WeightsError,
)

__all__ = [
    # Version
    '__version__',
    # Protocols
    'BuildConfigProtocol',
    'FileWalker',
    'WeightsFinder',
    # Config
    'Config',
    'ConfigModel',
    'BuildModel',
    'RunItem',
    'MountItem',
    # Dockerfile
    'Generator',
    'BuildPlan',
    'StagingArea',
    'WeightSet',
    'WeightsPlan',
    'make_dockerignore',
    'find_weights',
    # IO
    'FileSystem',
    'DiskFileSystem',
    'MemoryFileSystem',
    # Exceptions
    'CogBuildError',
    'ConfigError',
    'ConfigValidationError',
    'BuildError',
    'RunCommandError',
    'CogIOError',
    'StagingError',
    'WeightsError',
]

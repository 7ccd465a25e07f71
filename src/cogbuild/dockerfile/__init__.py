"""
cogbuild Dockerfile Module

- generator: Generator, the plan assembler (inline and isolated-weights modes)
- fragments: Dockerfile fragment builders, one per concern
- staging: StagingArea, the private scratch directory inside the build context
- weights: Weight partitioning and the weights-only Dockerfile
- ignore: .dockerignore synthesis
"""

from .generator import Generator, BuildPlan, Stage, PLAN_ORDER, load_embedded_wheel
from .staging import StagingArea, StagedFile
from .weights import WeightSet, WeightsPlan, partition_weights
from .ignore import make_dockerignore

__all__ = [
    'Generator',
    'BuildPlan',
    'Stage',
    'PLAN_ORDER',
    'load_embedded_wheel',
    'StagingArea',
    'StagedFile',
    'WeightSet',
    'WeightsPlan',
    'partition_weights',
    'make_dockerignore',
]

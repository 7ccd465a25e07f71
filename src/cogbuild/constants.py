# --- Log and Debug ---
# Short aliases for module names to keep CLI/env concise
LOG_ALIAS_MAP = {
    "gen": "cogbuild.dockerfile.generator",
    "generator": "cogbuild.dockerfile.generator",
    "stg": "cogbuild.dockerfile.staging",
    "staging": "cogbuild.dockerfile.staging",
    "frag": "cogbuild.dockerfile.fragments",
    "wts": "cogbuild.dockerfile.weights",
    "find": "cogbuild.weights",
    "conf": "cogbuild.config",
    "io": "cogbuild.io",
    "fs": "cogbuild.io.fs",
    "cli": "cogbuild.cli",
}

# Top-level modules within cogbuild for auto-prefixing
KNOWN_TOP_MODULES = {
    "dockerfile",
    "io",
    "utils",
    "config",
    "weights",
    "cli",
    "exceptions",
}

LOG_LEVELS_ENV = "COGBUILD_LOG_LEVELS"


# --- Filenames and Paths ---
CONFIG_FILENAME = "cog.yaml"
DOCKERFILE_NAME = "Dockerfile"
WEIGHTS_DOCKERFILE_NAME = "weights.Dockerfile"
DOCKERIGNORE_NAME = ".dockerignore"

# Staging directories end up as <dir>/.cog/tmp/build<digits>
STAGING_ROOT = ".cog/tmp"
STAGING_PREFIX = "build"
STAGING_CONTAINER_DIR = "/tmp"

# Wheel name needs to be full format otherwise pip refuses to install it
COG_WHEEL_FILENAME = "cog-0.0.1.dev-py3-none-any.whl"
REQUIREMENTS_FILENAME = "requirements.txt"
MANAGED_STAGING_FILES = frozenset({COG_WHEEL_FILENAME, REQUIREMENTS_FILENAME})


# --- Image layout ---
DOCKERFILE_SYNTAX = "#syntax=docker/dockerfile:1.4"
SOURCE_ROOT = "/src"
SERVER_PORT = 5000
SERVER_CMD = '["python", "-m", "cog.server.http"]'
WEIGHTS_STAGE = "weights"
WEIGHTS_IMAGE_SUFFIX = "-weights"
TINI_VERSION = "0.19.0"


# --- Config defaults ---
DEFAULT_PYTHON_VERSION = "3.10"
DEFAULT_CUDNN_VERSION = "8"
DEFAULT_UBUNTU_VERSION = "22.04"
SUPPORTED_OS = ("linux", "darwin")
SUPPORTED_ARCH = ("amd64", "arm64")
# platform.machine() spellings of the supported architectures
ARCH_ALIASES = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
}


# --- Weight discovery ---
WEIGHT_SIZE_THRESHOLD = 10 * 1024 * 1024
MODEL_FILE_SUFFIXES = frozenset({
    ".h5",
    ".ckpt",
    ".pth",
    ".pt",
    ".pkl",
    ".pb",
    ".onnx",
    ".bin",
    ".safetensors",
    ".tflite",
    ".joblib",
    ".msgpack",
})
CODE_FILE_SUFFIXES = frozenset({
    ".py",
    ".ipynb",
    ".sh",
    ".yaml",
    ".yml",
    ".json",
    ".txt",
})


# --- .dockerignore ---
DOCKERIGNORE_HEADER = """# generated by replicate/cog
__pycache__
*.pyc
*.pyo
*.pyd
.Python
env
pip-log.txt
pip-delete-this-directory.txt
.tox
.coverage
.coverage.*
.cache
nosetests.xml
coverage.xml
*.cover
*.log
.git
.mypy_cache
.pytest_cache
.hypothesis
"""

import yaml
import logging
from pathlib import PurePath
from typing import Dict, Any, List, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator, ConfigDict

from . import constants
from .io.fs import FileSystem, DiskFileSystem
from .exceptions import (
    CogIOError,
    CogPathNotFoundError,
    ConfigError,
    ConfigParsingError,
    ConfigFileMissingError,
    ConfigValidationError,
)


logger = logging.getLogger(__name__)

# pip options that take a file or package location
PATH_OPTIONS = ("--requirement", "--constraint", "--editable", "-r", "-c", "-e")


def relative_reference(line: str) -> Optional[str]:
    """Return the relative path a requirements line points at, or None."""
    target = line
    for option in PATH_OPTIONS:
        if line.startswith(option):
            target = line[len(option):].lstrip(" \t=")
            break
    else:
        if line.startswith("-"):
            return None
        if not (line == "." or line.startswith(("./", "../"))):
            return None
    if not target or target.startswith("/") or "://" in target:
        return None
    return target.split()[0]


class MountItem(BaseModel):
    """
        Class Config-Validation Model describe a `mounts` entry of a run step
    """
    type: str
    id: str
    target: str


class RunItem(BaseModel):
    """
        Class Config-Validation Model describe `build.run` steps
    """
    command: str
    mounts: List[MountItem] = Field(default_factory=list)


class BuildModel(BaseModel):
    """
        Class Config-Validation Model describe `build`
    """
    gpu: bool = False
    python_version: str = constants.DEFAULT_PYTHON_VERSION
    cuda: Optional[str] = None
    cudnn: str = constants.DEFAULT_CUDNN_VERSION
    ubuntu: str = constants.DEFAULT_UBUNTU_VERSION
    system_packages: List[str] = Field(default_factory=list)
    python_packages: List[str] = Field(default_factory=list)
    python_requirements: Optional[str] = None
    run: List[RunItem] = Field(default_factory=list)
    pre_install: List[str] = Field(default_factory=list)
    model_config = ConfigDict(extra="allow")

    @field_validator('run', mode='before')
    @classmethod
    def normalize_run_items(cls, value: Any) -> Any:
        """Accept plain strings as run steps without mounts"""
        if value is None:
            return []
        if not isinstance(value, list):
            raise ValueError("'run' must be a list of commands")
        return [{'command': item} if isinstance(item, str) else item for item in value]

    @field_validator('system_packages', 'python_packages', 'pre_install', mode='before')
    @classmethod
    def none_as_empty(cls, value: Any) -> Any:
        """`key:` with no value in YAML means an empty list"""
        return [] if value is None else value


class ConfigModel(BaseModel):
    """
        Class Config-Validation Model describe top-level of cog.yaml
    """
    build: BuildModel = Field(default_factory=BuildModel)
    predict: Optional[str] = None
    image: Optional[str] = None
    # other cog.yaml keys, we won't check
    model_config = ConfigDict(extra="allow")

    @field_validator('build', mode='before')
    @classmethod
    def none_as_default(cls, value: Any) -> Any:
        return {} if value is None else value


class Config:
    """
    Loads and validates cog.yaml using Pydantic models.
    It is the sole gatekeeper for configuration, and the lookups the
    Dockerfile generator needs (requirements text, CUDA base image) live here.
    """
    def __init__(self, config_path: str, fs: Optional[FileSystem] = None):
        self.path = config_path
        self.fs = fs or DiskFileSystem()
        self.directory = PurePath(config_path).parent
        logger.info(f"Loading configuration from '{self.path}'...")
        self.model = self._validate(self._load_raw_config())

    @classmethod
    def from_data(cls, data: Dict[str, Any], directory: str = ".", fs: Optional[FileSystem] = None) -> 'Config':
        """Build a Config from an already parsed mapping, resolving files against `directory`."""
        config = cls.__new__(cls)
        config.path = str(PurePath(directory) / constants.CONFIG_FILENAME)
        config.fs = fs or DiskFileSystem()
        config.directory = PurePath(directory)
        config.model = cls._validate(data)
        return config

    @staticmethod
    def _validate(data: Dict[str, Any]) -> ConfigModel:
        logger.debug("Validating configuration structure with Pydantic...")
        try:
            model = ConfigModel.model_validate(data)
        except ValidationError as e:
            raise ConfigValidationError(f"Configuration validation failed:\n{e}") from e
        logger.debug(f"Configuration model validated successfully: \n{model.model_dump_json(indent=2)}")
        return model

    def _load_raw_config(self) -> Dict[str, Any]:
        try:
            content = self.fs.read_text(self.path)
        except CogPathNotFoundError as e:
            raise ConfigFileMissingError(f"Configuration file not found at: {self.path}") from e
        try:
            config_data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ConfigParsingError(f"Error parsing YAML file: {e}") from e
        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigParsingError("Configuration file must be a YAML document containing a dictionary.")
        logger.debug(f"Successfully parsed YAML from '{self.path}'.")
        return config_data

    @property
    def gpu(self) -> bool:
        return self.model.build.gpu

    @property
    def python_version(self) -> str:
        return self.model.build.python_version

    @property
    def system_packages(self) -> List[str]:
        return list(self.model.build.system_packages)

    @property
    def run(self) -> List[RunItem]:
        return list(self.model.build.run)

    @property
    def pre_install(self) -> List[str]:
        return list(self.model.build.pre_install)

    @property
    def predict(self) -> Optional[str]:
        return self.model.predict

    def cuda_base_image_tag(self) -> str:
        """Return the nvidia/cuda image the GPU build starts from."""
        build = self.model.build
        if not build.cuda:
            raise ConfigError("A GPU build requires 'build.cuda' to select a CUDA base image.")
        return f"nvidia/cuda:{build.cuda}-cudnn{build.cudnn}-devel-ubuntu{build.ubuntu}"

    def python_requirements_for_arch(self, target_os: str, target_arch: str) -> str:
        """
        Render the pip requirements for the given target platform.

        The contents of `build.python_requirements` come first, followed by
        `build.python_packages`, one requirement per line.

        The result is installed from the staging directory, not from next to
        the original file, so lines that refer to a relative path (`-r
        base.txt`, `-c constraints.txt`, `-e ./pkg`, `./wheels/x.whl`) are
        rejected with a ConfigError. URLs and absolute paths are kept.
        """
        if target_os not in constants.SUPPORTED_OS:
            raise ConfigError(f"Unsupported target OS '{target_os}', must be one of {constants.SUPPORTED_OS}.")
        if target_arch not in constants.SUPPORTED_ARCH:
            raise ConfigError(f"Unsupported target architecture '{target_arch}', must be one of {constants.SUPPORTED_ARCH}.")

        lines = []
        requirements_file = self.model.build.python_requirements
        if requirements_file:
            path = self.directory / requirements_file
            try:
                text = self.fs.read_text(path)
            except CogIOError as e:
                raise ConfigError(f"Failed to read python_requirements '{requirements_file}': {e}") from e
            for line in text.splitlines():
                line = line.strip()
                if not line:
                    continue
                reference = relative_reference(line)
                if reference:
                    raise ConfigError(
                        f"python_requirements '{requirements_file}' refers to the relative path '{reference}', "
                        f"which does not exist inside the image. Inline it or use an absolute path or URL."
                    )
                lines.append(line)
        lines.extend(self.model.build.python_packages)
        logger.debug(f"Resolved {len(lines)} requirement line(s) for {target_os}/{target_arch}")
        return "\n".join(lines) + "\n" if lines else ""

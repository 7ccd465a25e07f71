class CogBuildError(Exception):
    """Base exception for all application-specific errors."""

    pass


# --- 1. Errors related to loading and resolving the build configuration ---
class ConfigError(CogBuildError):
    """Base class for errors encountered while reading or resolving cog.yaml."""

    pass


class ConfigFileMissingError(ConfigError):
    """Raised when the configuration file cannot be found."""

    pass


class ConfigParsingError(ConfigError):
    """Raised when a YAML configuration file is syntactically incorrect."""

    pass


class ConfigValidationError(ConfigError):
    """Raised when the configuration fails structural validation (e.g., Pydantic)."""

    pass


# --- 2. Errors that occur while assembling the Dockerfile ---
class BuildError(CogBuildError):
    """Base class for errors that occur during the generation of build instructions."""

    pass


class RunCommandError(BuildError):
    """Raised when a declared `run` command cannot be rendered as a single RUN line."""

    def __init__(self, message: str, command: str) -> None:
        super().__init__(message)
        self.command = command


class PayloadMissingError(BuildError):
    """Raised when no embedded cog wheel is available to install."""

    pass


# --- 3. Errors related to IO operations ---
class CogIOError(CogBuildError):
    """Base class for IO-related errors."""

    pass


class CogPathExistsError(CogIOError):
    """Raised when a file or directory already exists."""

    pass


class CogPathNotFoundError(CogIOError):
    """Raised when a file or directory is not found."""

    pass


class CogNotADirectoryError(CogIOError):
    """Raised when a directory is expected, but a file is found."""

    pass


class StagingError(CogIOError):
    """Raised when the build staging directory cannot be created, written or removed."""

    pass


class WeightsError(CogIOError):
    """Raised when model weights cannot be discovered in the build context."""

    pass

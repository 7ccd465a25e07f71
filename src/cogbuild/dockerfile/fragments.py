"""
Dockerfile fragment builders.

Each function returns one self-contained block of Dockerfile text for a
single concern, or "" when the concern does not apply. Only the wheel and
requirements builders touch the filesystem, through the staging area.
"""

import logging

from .. import constants
from ..protocols import BuildConfigProtocol
from ..exceptions import ConfigError, RunCommandError
from .staging import StagingArea

logger = logging.getLogger(__name__)

PIP_CACHE_MOUNT = "--mount=type=cache,target=/root/.cache/pip"
APT_CACHE_MOUNT = "--mount=type=cache,target=/var/cache/apt"

PREAMBLE = """ENV DEBIAN_FRONTEND=noninteractive
ENV PYTHONUNBUFFERED=1
ENV LD_LIBRARY_PATH=$LD_LIBRARY_PATH:/usr/lib/x86_64-linux-gnu:/usr/local/nvidia/lib64:/usr/local/nvidia/bin"""

# Build dependencies pyenv needs to compile CPython on the CUDA images
PYENV_BUILD_PACKAGES = (
    "make",
    "build-essential",
    "libssl-dev",
    "zlib1g-dev",
    "libbz2-dev",
    "libreadline-dev",
    "libsqlite3-dev",
    "wget",
    "curl",
    "llvm",
    "libncurses5-dev",
    "libncursesw5-dev",
    "xz-utils",
    "tk-dev",
    "libffi-dev",
    "liblzma-dev",
    "git",
    "ca-certificates",
)


def base_image(config: BuildConfigProtocol) -> str:
    """The image the final stage starts FROM."""
    if config.gpu:
        try:
            return config.cuda_base_image_tag()
        except ConfigError as e:
            raise ConfigError(f"Failed to resolve base image: {e}") from e
    return f"python:{config.python_version}"


def preamble() -> str:
    return PREAMBLE


def tini_stage(version: str = constants.TINI_VERSION) -> str:
    """A throwaway stage that downloads the tini init binary."""
    lines = [
        "FROM curlimages/curl AS downloader",
        f"ARG TINI_VERSION={version}",
        "WORKDIR /tmp",
        'RUN curl -fsSL -O "https://github.com/krallin/tini/releases/download/v${TINI_VERSION}/tini-amd64" && chmod +x tini',
    ]
    return "\n".join(lines)


def install_tini() -> str:
    """
    Install tini as the image entrypoint, so the server runs under an init
    that forwards signals and reaps zombies when it is PID 1.
    """
    lines = [
        "COPY --link --from=downloader /tmp/tini /sbin/tini",
        'ENTRYPOINT ["/sbin/tini", "--"]',
    ]
    return "\n".join(lines)


def install_python_cuda(config: BuildConfigProtocol) -> str:
    """
    Install the configured Python through pyenv, for CUDA base images which
    ship without it. The version is not checked here, a bad one fails the
    docker build.
    """
    py = config.python_version
    packages = " \\\n".join(f"\t{pkg}" for pkg in PYENV_BUILD_PACKAGES)
    return (
        'ENV PATH="/root/.pyenv/shims:/root/.pyenv/bin:$PATH"\n'
        f"RUN {APT_CACHE_MOUNT} apt-get update -qq && apt-get install -qqy --no-install-recommends \\\n"
        f"{packages} \\\n"
        "\t&& rm -rf /var/lib/apt/lists/*\n"
        "RUN curl -s -S -L https://raw.githubusercontent.com/pyenv/pyenv-installer/master/bin/pyenv-installer | bash && \\\n"
        '\tgit clone https://github.com/momo-lab/pyenv-install-latest.git "$(pyenv root)"/plugins/pyenv-install-latest && \\\n'
        f'\tpyenv install-latest "{py}" && \\\n'
        f'\tpyenv global $(pyenv install-latest --print "{py}") && \\\n'
        '\tpip install "wheel<1"'
    )


def apt_installs(config: BuildConfigProtocol) -> str:
    packages = config.system_packages
    if not packages:
        return ""
    return (
        f"RUN {APT_CACHE_MOUNT} apt-get update -qq && apt-get install -qqy "
        + " ".join(packages)
        + " && rm -rf /var/lib/apt/lists/*"
    )


def install_cog(staging: StagingArea, wheel: bytes) -> str:
    staged = staging.write(constants.COG_WHEEL_FILENAME, wheel)
    lines = list(staged.instructions)
    lines.append(f"RUN {PIP_CACHE_MOUNT} pip install {staged.container_path}")
    return "\n".join(lines)


def pip_installs(config: BuildConfigProtocol, staging: StagingArea, target_os: str, target_arch: str) -> str:
    try:
        requirements = config.python_requirements_for_arch(target_os, target_arch)
    except ConfigError as e:
        raise ConfigError(f"Failed to resolve python requirements: {e}") from e
    if not requirements.strip():
        logger.debug("No python requirements, skipping pip install")
        return ""

    staged = staging.write(constants.REQUIREMENTS_FILENAME, requirements.encode("utf-8"))
    lines = list(staged.instructions)
    lines.append(f"RUN {PIP_CACHE_MOUNT} pip install -r {staged.container_path}")
    return "\n".join(lines)


def run_commands(config: BuildConfigProtocol) -> str:
    """
    One RUN line per `build.run` step, then one per legacy `pre_install`
    command. Secret mounts are rendered as --mount flags.
    """
    steps = [(item.command, list(item.mounts)) for item in config.run]
    steps.extend((command, []) for command in config.pre_install)

    lines = []
    for raw_command, mounts in steps:
        command = raw_command.strip()
        if "\n" in command:
            raise RunCommandError(
                "One of the commands in 'run' contains a new line, which won't work. "
                "You need to create a new list item in YAML prefixed with '-' for each command.\n\n"
                f"This is the offending line: {command}",
                command=command,
            )

        if mounts:
            flags = [
                f"--mount=type=secret,id={mount.id},target={mount.target}"
                for mount in mounts
                if mount.type == "secret"
            ]
            lines.append(f"RUN {' '.join(flags)} {command}")
        else:
            lines.append(f"RUN {command}")
    return "\n".join(lines)


def serve() -> str:
    """WORKDIR, EXPOSE and CMD for the HTTP prediction server."""
    lines = [
        f"WORKDIR {constants.SOURCE_ROOT}",
        f"EXPOSE {constants.SERVER_PORT}",
        f"CMD {constants.SERVER_CMD}",
    ]
    return "\n".join(lines)


def copy_context() -> str:
    return f"COPY . {constants.SOURCE_ROOT}"

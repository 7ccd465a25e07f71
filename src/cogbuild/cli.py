import click
import logging
import traceback
from functools import wraps
from pathlib import Path

from . import constants
from .config import Config
from .dockerfile import Generator
from .io import DiskFileSystem
from .utils import setup_logger, parse_module_levels
from .exceptions import (
    CogBuildError,
    ConfigError,
    BuildError,
    CogIOError,
)
from . import __version__


def complete_config_files(ctx, param, incomplete):
    """Auto-complete .yml and .yaml config files in current directory"""
    cwd = Path.cwd()
    yml_files = list(cwd.glob('*.yml')) + list(cwd.glob('*.yaml'))
    return sorted(f.name for f in yml_files if f.name.startswith(incomplete))


def setup_logging(debug: bool, log_levels: str = None, log_file: str = None):
    """Setup logger with debug and module-level configuration"""
    module_levels = parse_module_levels(log_levels) if log_levels else None
    setup_logger(debug=debug, module_levels=module_levels, log_file=log_file)


def handle_errors(func):
    """Decorator to handle common exceptions"""
    def _abort(kind: str, e: Exception):
        logging.error(f"{kind}: {e}")
        ctx = click.get_current_context()
        if ctx.obj and ctx.obj.get('debug'):
            traceback.print_exc()
        raise click.Abort()

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            _abort("Configuration error", e)
        except BuildError as e:
            _abort("Build error", e)
        except CogIOError as e:
            _abort("IO error", e)
        except CogBuildError as e:
            _abort("An unexpected application error occurred", e)
    return wrapper


@handle_errors
def do_dockerfile(
    config_file: str,
    workdir: str,
    output: str,
    separate_weights: bool,
    image: str,
    wheel: str,
    target_os: str,
    target_arch: str,
):
    """Execute dockerfile command"""
    fs = DiskFileSystem()
    config_path = Path(config_file).resolve()
    context_dir = Path(workdir).resolve() if workdir else config_path.parent
    logging.debug(f"Using build context: {context_dir}")

    config = Config(str(config_path), fs)
    image = image or config.model.image
    if separate_weights and not image:
        raise click.UsageError("--separate-weights needs an image name, pass --image or set 'image' in cog.yaml")

    wheel_bytes = fs.read_bytes(wheel) if wheel else None
    generator = Generator(
        config,
        str(context_dir),
        wheel=wheel_bytes,
        fs=fs,
        target_os=target_os,
        target_arch=target_arch,
    )
    try:
        outputs = {}
        if separate_weights:
            plan = generator.generate(image)
            outputs[constants.WEIGHTS_DOCKERFILE_NAME] = plan.weights_dockerfile
            outputs[constants.DOCKERIGNORE_NAME] = plan.dockerignore
            outputs[constants.DOCKERFILE_NAME] = plan.dockerfile
        else:
            outputs[constants.DOCKERFILE_NAME] = generator.generate_without_separate_weights()
    finally:
        generator.cleanup()

    if not output:
        for name, text in outputs.items():
            if len(outputs) > 1:
                click.echo(f"# --- {name} ---")
            click.echo(text)
        return

    output_dir = Path(output).resolve()
    for name, text in outputs.items():
        fs.write_text(output_dir / name, text)
        logging.info(f"Wrote {output_dir / name}")


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.option('-l', '--log-levels', help="Comma-separated per-module log levels (e.g., 'gen=DEBUG,fs=INFO')")
@click.option('-f', '--log-file', help='Path to log file')
@click.version_option(version=__version__, prog_name='cogbuild')
@click.pass_context
def cli(ctx, debug, log_levels, log_file):
    """cogbuild - Dockerfile generator for cog models

    \b
    Examples:
      cogbuild dockerfile                                Print the Dockerfile for ./cog.yaml
      cogbuild dockerfile -o build/                      Write it to build/Dockerfile
      cogbuild dockerfile --separate-weights --image r8.im/me/model
    """
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    setup_logging(debug, log_levels, log_file)


@cli.command()
@click.argument('config_file', default=constants.CONFIG_FILENAME, shell_complete=complete_config_files)
@click.option('-w', '--workdir', help="Build context directory (default: the config file's directory)")
@click.option('-o', '--output', help='Directory to write the generated files to (default: print them)')
@click.option('--separate-weights', is_flag=True, help='Build model weights as a separate image')
@click.option('--image', help='Model image name, the weights image is <image>-weights')
@click.option('--wheel', type=click.Path(exists=True, dir_okay=False), help='cog wheel to install instead of the embedded one')
@click.option('--os', 'target_os', help='Target OS for python requirements (default: host)')
@click.option('--arch', 'target_arch', help='Target architecture for python requirements (default: host)')
@click.pass_context
def dockerfile(ctx, config_file, workdir, output, separate_weights, image, wheel, target_os, target_arch):
    """Generate the Dockerfile for a model

    \b
    Staged build inputs are removed once generation finishes, so the
    output is meant for inspection rather than for `docker build`.
    """
    do_dockerfile(config_file, workdir, output, separate_weights, image, wheel, target_os, target_arch)

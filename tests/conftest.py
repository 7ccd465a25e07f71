import pytest
import yaml

from cogbuild.config import Config
from cogbuild.dockerfile import Generator

WHEEL = b"PK\x03\x04 not really a wheel"


@pytest.fixture
def create_config_file(tmp_path):
    """A pytest fixture to create a temporary cog.yaml file."""
    def _create_file(config_data: dict, name: str = "cog.yaml"):
        config_file = tmp_path / name
        with open(config_file, 'w') as f:
            yaml.dump(config_data, f)
        return config_file
    return _create_file


@pytest.fixture
def make_config(tmp_path):
    """Build a Config rooted at tmp_path from a `build` mapping."""
    def _make(build: dict | None = None, **extra) -> Config:
        return Config.from_data({'build': build or {}, **extra}, str(tmp_path))
    return _make


@pytest.fixture
def make_generator(tmp_path):
    """Generators targeting linux/amd64 with a fake wheel, cleaned up after the test."""
    generators = []

    def _make(config, **kwargs) -> Generator:
        kwargs.setdefault('wheel', WHEEL)
        kwargs.setdefault('target_os', 'linux')
        kwargs.setdefault('target_arch', 'amd64')
        generator = Generator(config, str(tmp_path), **kwargs)
        generators.append(generator)
        return generator

    yield _make

    for generator in generators:
        if (tmp_path / generator.staging.relative_path).exists():
            generator.cleanup()


@pytest.fixture
def sparse_file():
    """Create a file of `size` bytes without writing them."""
    def _write(path, size: int):
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.truncate(size)
        return path
    return _write

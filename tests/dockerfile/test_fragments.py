import pytest

from cogbuild.dockerfile import fragments
from cogbuild.dockerfile.staging import StagingArea
from cogbuild.exceptions import ConfigError, RunCommandError


@pytest.fixture
def staging(tmp_path):
    area = StagingArea.create(tmp_path)
    yield area
    area.cleanup()


class TestBaseImage:

    def test_cpu_uses_python_image(self, make_config):
        assert fragments.base_image(make_config({'python_version': '3.11'})) == "python:3.11"

    def test_gpu_uses_cuda_image(self, make_config):
        config = make_config({'gpu': True, 'cuda': '12.1'})
        assert fragments.base_image(config) == "nvidia/cuda:12.1-cudnn8-devel-ubuntu22.04"

    def test_gpu_lookup_failure_names_the_fragment(self, make_config):
        with pytest.raises(ConfigError, match="Failed to resolve base image"):
            fragments.base_image(make_config({'gpu': True}))


class TestFixedFragments:

    def test_preamble(self):
        assert fragments.preamble().splitlines() == [
            "ENV DEBIAN_FRONTEND=noninteractive",
            "ENV PYTHONUNBUFFERED=1",
            "ENV LD_LIBRARY_PATH=$LD_LIBRARY_PATH:/usr/lib/x86_64-linux-gnu:/usr/local/nvidia/lib64:/usr/local/nvidia/bin",
        ]

    def test_tini_stage_pins_version(self):
        stage = fragments.tini_stage("0.18.0")
        assert stage.startswith("FROM curlimages/curl AS downloader\n")
        assert "ARG TINI_VERSION=0.18.0" in stage
        assert "tini/releases/download/v${TINI_VERSION}/tini-amd64" in stage

    def test_install_tini_is_entrypoint(self):
        assert fragments.install_tini() == (
            "COPY --link --from=downloader /tmp/tini /sbin/tini\n"
            'ENTRYPOINT ["/sbin/tini", "--"]'
        )

    def test_serve_and_copy_context(self):
        assert fragments.serve() == 'WORKDIR /src\nEXPOSE 5000\nCMD ["python", "-m", "cog.server.http"]'
        assert fragments.copy_context() == "COPY . /src"


class TestInstallPythonCuda:

    def test_pins_configured_version(self, make_config):
        text = fragments.install_python_cuda(make_config({'gpu': True, 'python_version': '3.9'}))
        lines = text.splitlines()
        assert lines[0] == 'ENV PATH="/root/.pyenv/shims:/root/.pyenv/bin:$PATH"'
        assert lines[1].startswith("RUN --mount=type=cache,target=/var/cache/apt apt-get update -qq")
        assert "\tbuild-essential \\" in lines
        assert '\tpyenv install-latest "3.9" && \\' in lines
        assert '\tpyenv global $(pyenv install-latest --print "3.9") && \\' in lines
        assert lines[-1] == '\tpip install "wheel<1"'


class TestAptInstalls:

    def test_empty_when_no_packages(self, make_config):
        assert fragments.apt_installs(make_config()) == ""

    def test_installs_declared_packages(self, make_config):
        config = make_config({'system_packages': ['ffmpeg', 'libgl1']})
        assert fragments.apt_installs(config) == (
            "RUN --mount=type=cache,target=/var/cache/apt apt-get update -qq && "
            "apt-get install -qqy ffmpeg libgl1 && rm -rf /var/lib/apt/lists/*"
        )


class TestInstallCog:

    def test_stages_wheel_and_installs_it(self, staging, tmp_path):
        text = fragments.install_cog(staging, b"wheel-bytes")
        wheel = "cog-0.0.1.dev-py3-none-any.whl"
        assert text == (
            f"COPY {staging.relative_path}/{wheel} /tmp/{wheel}\n"
            f"RUN --mount=type=cache,target=/root/.cache/pip pip install /tmp/{wheel}"
        )
        assert (tmp_path / staging.relative_path / wheel).read_bytes() == b"wheel-bytes"


class TestPipInstalls:

    def test_empty_when_requirements_blank(self, make_config, staging, tmp_path):
        assert fragments.pip_installs(make_config(), staging, "linux", "amd64") == ""
        assert not (tmp_path / staging.relative_path / "requirements.txt").exists()

    def test_stages_requirements(self, make_config, staging, tmp_path):
        config = make_config({'python_packages': ['numpy==1.26.0']})
        text = fragments.pip_installs(config, staging, "linux", "amd64")
        assert text == (
            f"COPY {staging.relative_path}/requirements.txt /tmp/requirements.txt\n"
            "RUN --mount=type=cache,target=/root/.cache/pip pip install -r /tmp/requirements.txt"
        )
        assert (tmp_path / staging.relative_path / "requirements.txt").read_text() == "numpy==1.26.0\n"

    def test_resolution_failure_names_the_fragment(self, make_config, staging):
        with pytest.raises(ConfigError, match="Failed to resolve python requirements"):
            fragments.pip_installs(make_config(), staging, "plan9", "amd64")


class TestRunCommands:

    def test_one_line_per_step(self, make_config):
        config = make_config({'run': ['apt-get moo', '  echo hi  ']})
        assert fragments.run_commands(config) == "RUN apt-get moo\nRUN echo hi"

    def test_empty_when_nothing_declared(self, make_config):
        assert fragments.run_commands(make_config()) == ""

    def test_blank_command_still_renders(self, make_config):
        assert fragments.run_commands(make_config({'run': ['   ']})) == "RUN "

    def test_pre_install_appended_after_run(self, make_config):
        config = make_config({'run': ['echo run'], 'pre_install': ['echo legacy']})
        assert fragments.run_commands(config) == "RUN echo run\nRUN echo legacy"

    def test_secret_mounts_become_flags(self, make_config):
        config = make_config({'run': [{
            'command': 'pip install -r private.txt',
            'mounts': [
                {'type': 'secret', 'id': 'pip', 'target': '/etc/pip.conf'},
                {'type': 'secret', 'id': 'netrc', 'target': '/root/.netrc'},
            ],
        }]})
        assert fragments.run_commands(config) == (
            "RUN --mount=type=secret,id=pip,target=/etc/pip.conf "
            "--mount=type=secret,id=netrc,target=/root/.netrc pip install -r private.txt"
        )

    def test_non_secret_mounts_are_ignored(self, make_config):
        config = make_config({'run': [{
            'command': 'ls',
            'mounts': [
                {'type': 'cache', 'id': 'c', 'target': '/cache'},
                {'type': 'secret', 'id': 's', 'target': '/s'},
            ],
        }]})
        assert fragments.run_commands(config) == "RUN --mount=type=secret,id=s,target=/s ls"

    def test_newline_is_rejected(self, make_config):
        config = make_config({'run': ['echo ok', 'echo one\necho two']})
        with pytest.raises(RunCommandError, match="contains a new line") as exc_info:
            fragments.run_commands(config)
        assert exc_info.value.command == "echo one\necho two"
        assert "This is the offending line: echo one\necho two" in str(exc_info.value)

    def test_trailing_newline_is_trimmed_not_rejected(self, make_config):
        assert fragments.run_commands(make_config({'run': ['echo hi\n']})) == "RUN echo hi"

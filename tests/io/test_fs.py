import uuid

import pytest

from cogbuild.io import DiskFileSystem, MemoryFileSystem
from cogbuild.exceptions import CogIOError, CogPathExistsError, CogPathNotFoundError


class TestDiskFileSystem:
    """Unit tests for the fsspec-backed local file system."""

    def test_write_creates_parents_and_reads_back(self, tmp_path):
        fs = DiskFileSystem()
        target = tmp_path / "a" / "b" / "file.bin"
        fs.write_bytes(target, b"\x00\x01")
        assert fs.read_bytes(target) == b"\x00\x01"
        assert fs.is_dir(tmp_path / "a" / "b")

    def test_read_missing_file_raises_not_found(self, tmp_path):
        with pytest.raises(CogPathNotFoundError):
            DiskFileSystem().read_text(tmp_path / "missing.txt")

    def test_not_found_is_an_io_error(self, tmp_path):
        with pytest.raises(CogIOError):
            DiskFileSystem().read_bytes(tmp_path / "missing.bin")

    def test_mkdir_without_exist_ok_refuses_existing(self, tmp_path):
        fs = DiskFileSystem()
        fs.mkdir(tmp_path / "once")
        with pytest.raises(CogPathExistsError):
            fs.mkdir(tmp_path / "once")

    def test_mkdir_exist_ok(self, tmp_path):
        fs = DiskFileSystem()
        fs.mkdir(tmp_path / "x" / "y", parents=True, exist_ok=True)
        fs.mkdir(tmp_path / "x" / "y", parents=True, exist_ok=True)
        assert fs.exists(tmp_path / "x" / "y")

    def test_mkdir_exist_ok_without_parents(self, tmp_path):
        fs = DiskFileSystem()
        fs.mkdir(tmp_path / "single")
        fs.mkdir(tmp_path / "single", exist_ok=True)
        assert fs.is_dir(tmp_path / "single")

    def test_mkdir_exist_ok_still_refuses_a_file(self, tmp_path):
        fs = DiskFileSystem()
        fs.write_text(tmp_path / "taken", "file")
        assert fs.exists(tmp_path / "taken")
        assert not fs.is_dir(tmp_path / "taken")
        with pytest.raises(CogIOError):
            fs.mkdir(tmp_path / "taken", exist_ok=True)

    def test_rmtree_missing_path_is_a_no_op(self, tmp_path):
        fs = DiskFileSystem()
        fs.rmtree(tmp_path / "never-created")
        assert not fs.exists(tmp_path / "never-created")

    def test_rmtree_removes_everything(self, tmp_path):
        fs = DiskFileSystem()
        fs.write_text(tmp_path / "tree" / "nested" / "f.txt", "hi")
        fs.rmtree(tmp_path / "tree")
        assert not (tmp_path / "tree").exists()

    def test_walk_files_yields_relative_paths_and_sizes(self, tmp_path):
        fs = DiskFileSystem()
        fs.write_bytes(tmp_path / "model.bin", b"12345")
        fs.write_text(tmp_path / "weights" / "a.pt", "abc")
        assert list(fs.walk_files(tmp_path)) == [
            ("model.bin", 5),
            ("weights/a.pt", 3),
        ]


class TestMemoryFileSystem:

    def test_roundtrip_and_walk(self):
        fs = MemoryFileSystem()
        root = f"/cogbuild-test-{uuid.uuid4().hex}"
        fs.write_text(f"{root}/cog.yaml", "build: {}\n")
        fs.write_bytes(f"{root}/w/model.pt", b"1234")
        try:
            assert fs.read_text(f"{root}/cog.yaml") == "build: {}\n"
            assert sorted(fs.walk_files(root)) == [("cog.yaml", 10), ("w/model.pt", 4)]
        finally:
            fs.rmtree(root)
        assert not fs.exists(root)

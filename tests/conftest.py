import sys
from pathlib import Path
import importlib
import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


@pytest.fixture()
def m():
    """Lazily import the main module for tests to avoid module-level import."""
    return importlib.import_module("main")


@pytest.fixture()
def no_progress(monkeypatch, m):
    """Capture progress rendering in main module during tests."""
    calls = []

    def _stub(line: str):
        calls.append(line)

    monkeypatch.setattr(m, "_print_progress", _stub)
    return calls


@pytest.fixture()
def progress_recorder():
    """Provide a reusable progress callback and its call log."""
    calls = []

    def cb(done, total):
        calls.append((done, total))

    return cb, calls


@pytest.fixture()
def sample_files(tmp_path: Path):
    """Create input files covering the interesting encoder cases.

    Files:
        abra.txt    ``abracadabra``
        same.bin    1000 bytes of ``0x41``
        empty.txt   zero bytes
        noext       text without a dot in its name
        all.bin     every byte value, with uneven counts
    """
    (tmp_path / "abra.txt").write_bytes(b"abracadabra")
    (tmp_path / "same.bin").write_bytes(b"\x41" * 1000)
    (tmp_path / "empty.txt").write_bytes(b"")
    (tmp_path / "noext").write_bytes(b"hello")
    (tmp_path / "all.bin").write_bytes(
        bytes(b for b in range(256) for _ in range(1 + b % 7))
    )
    return tmp_path

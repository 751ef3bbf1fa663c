import logging
import os

import pytest


@pytest.fixture
def make_tree(tmp_path):
    """Return a factory writing {relative path: bytes | str} into a fresh directory."""
    counter = iter(range(1_000_000))

    def _make(files, name=None):
        root = tmp_path / (name or f"tree{next(counter)}")
        root.mkdir()
        for rel, data in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data if isinstance(data, bytes) else data.encode("utf-8"))
        return root

    return _make


@pytest.fixture
def symlink():
    def _symlink(target, link, target_is_directory=False):
        try:
            os.symlink(target, link, target_is_directory=target_is_directory)
        except (OSError, NotImplementedError) as e:
            pytest.skip(f"symlinks are not available: {e}")

    return _symlink


@pytest.fixture(autouse=True)
def restore_root_logging():
    # cli.main reconfigures the root logger
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)

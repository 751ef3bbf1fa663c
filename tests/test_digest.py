import os

import pytest
from blake3 import blake3

from treedigest import digest as digest_module
from treedigest import walker
from treedigest.config import Config
from treedigest.digest import compute_digest, compute_report, format_report
from treedigest.errors import TraversalError
from treedigest.framer import DOMAIN_TAG
from treedigest.ignore import DEFAULT_IGNORE_FILE

HELLO_WORLD = {"a.txt": b"hello", "sub/b.txt": b"world"}


def test_known_digest_value(make_tree):
    root = make_tree(HELLO_WORLD)

    expected = blake3(
        DOMAIN_TAG
        + b"F\0a.txt\0" + blake3(b"hello").digest()
        + b"F\0sub/b.txt\0" + blake3(b"world").digest()
    ).hexdigest()

    assert compute_digest(root).hexdigest() == expected


def test_empty_tree(make_tree):
    assert compute_digest(make_tree({})).hexdigest() == blake3(DOMAIN_TAG).hexdigest()


def test_deterministic(make_tree):
    root = make_tree({"a.txt": "a", "b/c.bin": os.urandom(100_000), "b/d/e.txt": ""})
    assert compute_digest(root) == compute_digest(root)


def test_construction_order_does_not_matter(make_tree):
    forward = make_tree(HELLO_WORLD)
    backward = make_tree(dict(reversed(list(HELLO_WORLD.items()))))
    assert compute_digest(forward) == compute_digest(backward)


def test_discovery_order_does_not_matter(make_tree, monkeypatch):
    root = make_tree({"a.txt": "a", "b/c.txt": "c", "b/d.txt": "d", "z/y/x.txt": "x"})
    expected = compute_digest(root)

    real_list_dir = walker.list_dir
    monkeypatch.setattr(walker, "list_dir", lambda path: list(reversed(real_list_dir(path))))

    assert compute_digest(root) == expected


def test_worker_count_does_not_matter(make_tree):
    root = make_tree({f"dir{i % 3}/file{i}.txt": f"content {i}" for i in range(40)})
    assert compute_digest(root, Config(workers=1)) == compute_digest(root, Config(workers=16))


def test_content_sensitivity(make_tree):
    original = make_tree({"a.txt": b"hello", "sub/b.txt": b"world"})
    changed = make_tree({"a.txt": b"hello", "sub/b.txt": b"worle"})
    assert compute_digest(original) != compute_digest(changed)


def test_path_sensitivity(make_tree):
    original = make_tree({"a.txt": b"hello"})
    renamed = make_tree({"b.txt": b"hello"})
    moved = make_tree({"sub/a.txt": b"hello"})
    digests = {compute_digest(original), compute_digest(renamed), compute_digest(moved)}
    assert len(digests) == 3


def test_empty_file_is_not_the_same_as_no_file(make_tree):
    assert compute_digest(make_tree({"empty.txt": b""})) != compute_digest(make_tree({}))


def test_ignored_subtree_matches_absent_subtree(make_tree):
    with_build = make_tree({"build/out.bin": b"\x00\x01", "src/main.txt": b"main"})
    without_build = make_tree({"src/main.txt": b"main"})
    config = Config(ignore_patterns=["build/**"])

    assert compute_digest(with_build, config) == compute_digest(without_build, config)
    assert compute_digest(with_build) != compute_digest(without_build)


def test_default_ignore_file_is_applied(make_tree):
    ignore = "# outputs\nbuild/**\n"
    with_build = make_tree({DEFAULT_IGNORE_FILE: ignore, "build/out.bin": b"x", "src/main.txt": b"m"})
    without_build = make_tree({DEFAULT_IGNORE_FILE: ignore, "src/main.txt": b"m"})

    assert compute_digest(with_build) == compute_digest(without_build)
    no_dotfile = Config(load_default_ignore_file=False)
    assert compute_digest(with_build, no_dotfile) != compute_digest(without_build, no_dotfile)


def test_metadata_toggle(make_tree):
    root = make_tree({"a.txt": b"hello"})
    target = root / "a.txt"
    os.utime(target, ns=(1_600_000_000_000_000_000, 1_600_000_000_000_000_000))

    plain = Config()
    with_metadata = Config(include_metadata=True)
    before_plain = compute_digest(root, plain)
    before_meta = compute_digest(root, with_metadata)

    os.utime(target, ns=(1_600_000_000_000_000_000, 1_600_000_100_000_000_500))

    assert compute_digest(root, plain) == before_plain
    assert compute_digest(root, with_metadata) != before_meta
    assert before_meta != before_plain


def test_symlink_only_tree_matches_empty_tree(make_tree, tmp_path, symlink):
    target = tmp_path / "outside.txt"
    target.write_bytes(b"data")
    root = make_tree({})
    symlink(target, root / "link.txt")

    assert compute_digest(root) == compute_digest(make_tree({}))
    assert compute_digest(root, Config(follow_symlinks=True)) == compute_digest(make_tree({"link.txt": b"data"}))


def test_case_insensitive_order_only_changes_order(make_tree):
    mixed = make_tree({"B.txt": b"1", "a.txt": b"2"})
    sensitive = compute_digest(mixed)
    insensitive = compute_digest(mixed, Config(case_insensitive_order=True))
    assert sensitive != insensitive

    lower = make_tree({"b.txt": b"1", "a.txt": b"2"})
    assert compute_digest(lower) == compute_digest(lower, Config(case_insensitive_order=True))


def test_report(make_tree):
    root = make_tree(HELLO_WORLD)

    report = compute_report(root)

    assert report.digest == compute_digest(root)
    assert list(report.lines()) == [
        f"{blake3(b'hello').hexdigest()}  a.txt",
        f"{blake3(b'world').hexdigest()}  sub/b.txt",
    ]
    assert format_report(report).splitlines()[-1] == f"{report.digest.hexdigest()}  ."


def test_read_failure_aborts_without_digest(make_tree, monkeypatch):
    root = make_tree({"a.txt": "a", "b.txt": "b", "c.txt": "c"})
    real_file_digest = digest_module.file_content_digest

    def failing_file_digest(path):
        if path.endswith("b.txt"):
            raise TraversalError(TraversalError.IO, path, "Input/output error")
        return real_file_digest(path)

    monkeypatch.setattr(digest_module, "file_content_digest", failing_file_digest)

    with pytest.raises(TraversalError) as exc_info:
        compute_digest(root, Config(workers=2))

    assert exc_info.value.path.endswith("b.txt")


def test_missing_root(tmp_path):
    with pytest.raises(TraversalError):
        compute_digest(tmp_path / "does-not-exist")

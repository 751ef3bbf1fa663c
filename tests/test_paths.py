from pathlib import PurePosixPath

import pytest

from treedigest.errors import PathError
from treedigest.paths import normalize_separators, relative_path, sort_key


def test_relative_path_uses_forward_slashes(tmp_path):
    assert relative_path(tmp_path / "sub" / "deep" / "a.txt", tmp_path) == "sub/deep/a.txt"


def test_relative_path_accepts_strings(tmp_path):
    assert relative_path(str(tmp_path / "a.txt"), str(tmp_path)) == "a.txt"


def test_relative_path_drops_dot_segments():
    assert relative_path(PurePosixPath("/r/./a/./b"), PurePosixPath("/r")) == "a/b"


def test_relative_path_outside_root_fails(tmp_path):
    with pytest.raises(PathError):
        relative_path(tmp_path.parent / "elsewhere.txt", tmp_path)


def test_relative_path_escaping_with_dotdot_fails():
    with pytest.raises(PathError, match="escapes"):
        relative_path(PurePosixPath("/r/a/../../x"), PurePosixPath("/r"))


def test_relative_path_of_root_itself_fails(tmp_path):
    with pytest.raises(PathError):
        relative_path(tmp_path, tmp_path)


def test_normalize_separators():
    assert normalize_separators("build\\**\\*.o") == "build/**/*.o"


def test_sort_key_is_bytewise_by_default():
    names = ["b.txt", "B.txt", "a.txt", "a/b.txt", "a-b.txt"]
    assert sorted(names, key=sort_key) == ["B.txt", "a-b.txt", "a.txt", "a/b.txt", "b.txt"]


def test_sort_key_case_insensitive_breaks_ties_bytewise():
    names = ["b.txt", "a.txt", "B.txt", "A.txt"]
    ordered = sorted(names, key=lambda n: sort_key(n, case_insensitive=True))
    assert ordered == ["A.txt", "a.txt", "B.txt", "b.txt"]


def test_sort_key_case_insensitive_is_deterministic_for_any_input_order():
    names = ["Readme", "README", "readme", "rEADME"]
    expected = sorted(names, key=lambda n: sort_key(n, True))
    assert sorted(reversed(names), key=lambda n: sort_key(n, True)) == expected

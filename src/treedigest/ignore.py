# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
import re

import pathspec
from pathspec.patterns.gitignore.basic import GitIgnoreBasicPattern

from .errors import ConfigurationError, PatternError
from .paths import normalize_separators

DEFAULT_IGNORE_FILE = ".treedigestignore"


def _compile_pattern(pattern: str) -> GitIgnoreBasicPattern:
    """Compile one root-relative glob with gitignore wildcard rules."""
    if not pattern.strip():
        raise PatternError(pattern, "empty pattern")
    if pattern.startswith("/"):
        raise PatternError(pattern, "patterns are relative to the root and cannot start with '/'")

    body = pattern[:-1] if pattern.endswith("/") else pattern
    for seg in body.split("/"):
        if seg in ("", ".", ".."):
            raise PatternError(pattern, f"invalid path segment '{seg}'")

    # A leading "/" anchors the pattern at the root, so "*.log" does not
    # match "sub/a.log". It also turns "#" and "!" into literal characters.
    try:
        return GitIgnoreBasicPattern("/" + pattern)
    except (ValueError, re.error) as e:
        raise PatternError(pattern, str(e)) from e


class IgnoreMatcher:
    """Compiled, ordered set of ignore globs tested against normalized paths."""

    def __init__(self, patterns):
        self.patterns = tuple(patterns)
        self._compiled = [_compile_pattern(p) for p in self.patterns]
        self._spec = pathspec.PathSpec(self._compiled)

    @staticmethod
    def _subject(rel_path, is_dir):
        # "build/**" and "build/" only match below "build/", which is what
        # lets a directory be pruned before it is listed.
        return rel_path + "/" if is_dir else rel_path

    def matches(self, rel_path: str, is_dir: bool = False) -> bool:
        return self._spec.match_file(self._subject(rel_path, is_dir))

    def matching_pattern(self, rel_path: str, is_dir: bool = False):
        """Return the first pattern matching `rel_path`, or None."""
        subject = self._subject(rel_path, is_dir)
        for pattern, compiled in zip(self.patterns, self._compiled):
            if compiled.match_file(subject) is not None:
                return pattern
        return None

    def __len__(self):
        return len(self.patterns)

    def __repr__(self):
        return f"IgnoreMatcher({list(self.patterns)!r})"


def compile_patterns(patterns) -> IgnoreMatcher:
    """Compile glob patterns, failing on the first malformed one."""
    matcher = IgnoreMatcher(normalize_separators(p) for p in patterns)
    for pattern, compiled in zip(matcher.patterns, matcher._compiled):
        logging.debug(f"Ignore pattern '{pattern}' -> /{compiled.regex.pattern}/")
    return matcher


def load_ignore_file(path):
    """Read newline-separated glob patterns from `path`.

    Blank lines and "#" comments are skipped. Negated ("!") patterns are not
    supported and are skipped with a warning.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot read ignore file '{path}': {e}") from e

    patterns = []
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("!"):
            logging.warning(f"{path}:{line_no}: negated pattern '{line}' is not supported, skipping it")
            continue
        patterns.append(line)

    logging.info(f"Loaded {len(patterns)} ignore patterns from {path}")
    return patterns

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


class TreeDigestError(Exception):
    """Base class for all errors raised while computing a tree digest."""


class ConfigurationError(TreeDigestError):
    """Raised before any traversal when the configuration cannot be used.

    Nothing has been read from the tree yet, so the caller can fix the
    configuration and retry right away.
    """


class PatternError(ConfigurationError):
    def __init__(self, pattern, reason):
        super().__init__(f"Invalid ignore pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class TraversalError(TreeDigestError):
    """Raised when the walk or a file read fails; no digest is produced.

    `kind` is "io" for filesystem failures and "cycle" for symlink loops.
    """

    IO = "io"
    CYCLE = "cycle"

    def __init__(self, kind, path, detail=""):
        msg = f"{kind} error at '{path}'"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
        self.kind = kind
        self.path = path
        self.detail = detail


class PathError(TreeDigestError):
    """Internal invariant violation, e.g. a path escaping the root."""

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

import os
from pathlib import PurePath

from .errors import PathError


def relative_path(path, root) -> str:
    """Return `path` relative to `root` in canonical form.

    The result always uses "/" separators and never has a leading or trailing
    slash or "." / ".." segments, whatever the host path conventions are.
    """
    try:
        rel = PurePath(path).relative_to(PurePath(root))
    except ValueError as e:
        raise PathError(f"Path '{path}' is not inside root '{root}'") from e

    parts = [p for p in rel.parts if p not in ("", ".")]
    if ".." in parts:
        raise PathError(f"Path '{path}' escapes root '{root}'")
    if not parts:
        raise PathError(f"Path '{path}' is the root '{root}' itself")

    return "/".join(parts)


def normalize_separators(text: str) -> str:
    return text.replace("\\", "/")


def path_bytes(rel_path: str) -> bytes:
    # surrogateescape round-trips names that are not valid in the fs encoding
    return os.fsencode(rel_path)


def sort_key(rel_path: str, case_insensitive=False):
    raw = path_bytes(rel_path)
    if case_insensitive:
        # bytes.lower() only folds ASCII letters; ties fall back to raw bytes
        return (raw.lower(), raw)
    return raw

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
import os
import stat
from dataclasses import dataclass
from typing import Optional

from .errors import TraversalError
from .paths import relative_path, sort_key
from .time_block import TimeBlock


@dataclass(frozen=True)
class FileMetadata:
    mode: Optional[int]
    mtime_seconds: int
    mtime_nanoseconds: int

    @classmethod
    def from_stat(cls, st):
        # Windows only synthesizes st_mode from the read-only flag
        mode = None if os.name == "nt" else st.st_mode
        seconds, nanoseconds = divmod(st.st_mtime_ns, 1_000_000_000)
        return cls(mode, seconds, nanoseconds)


@dataclass(frozen=True)
class FileEntry:
    relative_path: str
    path: str
    metadata: Optional[FileMetadata] = None


def list_dir(path):
    """Return the entries of a directory in whatever order the OS reports them."""
    with os.scandir(path) as it:
        return list(it)


def _io_error(path, e: OSError):
    return TraversalError(TraversalError.IO, path, e.strerror or str(e))


def _walk_dir(root, dir_path, matcher, follow_symlinks, include_metadata, ancestors):
    try:
        entries = list_dir(dir_path)
    except OSError as e:
        raise _io_error(dir_path, e) from e

    for entry in entries:
        rel = relative_path(entry.path, root)

        if matcher.matches(rel):
            logging.debug(f"Ignoring '{rel}' (matches '{matcher.matching_pattern(rel)}')")
            continue

        try:
            is_link = entry.is_symlink()
            if is_link and not follow_symlinks:
                logging.debug(f"Skipping symlink '{rel}'")
                continue
            st = os.stat(entry.path, follow_symlinks=is_link)
        except OSError as e:
            raise _io_error(entry.path, e) from e

        if stat.S_ISDIR(st.st_mode):
            if matcher.matches(rel, is_dir=True):
                logging.debug(f"Ignoring directory '{rel}' (matches '{matcher.matching_pattern(rel, is_dir=True)}')")
                continue
            dir_id = (st.st_dev, st.st_ino)
            if dir_id in ancestors:
                raise TraversalError(TraversalError.CYCLE, entry.path, "link points back to one of its parent directories")
            yield from _walk_dir(root, entry.path, matcher, follow_symlinks, include_metadata, ancestors | {dir_id})
        elif stat.S_ISREG(st.st_mode):
            metadata = FileMetadata.from_stat(st) if include_metadata else None
            yield FileEntry(rel, entry.path, metadata)
        else:
            logging.debug(f"Skipping special file '{rel}'")


def walk_tree(root, matcher, follow_symlinks=False, include_metadata=False):
    """Lazily yield a FileEntry for every regular file under `root` that is not ignored.

    Entries come out in OS discovery order. Ignored directories are pruned
    without being descended into. Symlinks are skipped unless
    `follow_symlinks` is set, in which case a link leading back to one of
    its own parent directories raises TraversalError(kind="cycle").

    The generator cannot be restarted; walk again for a new computation.
    """
    root = os.fspath(root)
    try:
        st = os.stat(root)
    except OSError as e:
        raise _io_error(root, e) from e
    if not stat.S_ISDIR(st.st_mode):
        raise TraversalError(TraversalError.IO, root, "not a directory")

    yield from _walk_dir(root, root, matcher, follow_symlinks, include_metadata, frozenset({(st.st_dev, st.st_ino)}))


def collect_entries(root, matcher, follow_symlinks=False, include_metadata=False, case_insensitive_order=False):
    """Walk `root` and return its file entries in canonical order."""
    with TimeBlock(f"Walking {root}") as tb:
        entries = list(walk_tree(root, matcher, follow_symlinks, include_metadata))
        entries.sort(key=lambda e: sort_key(e.relative_path, case_insensitive_order))
        tb.append_data("files", len(entries))

    return entries

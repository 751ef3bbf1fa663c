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
import struct
from dataclasses import dataclass

from blake3 import blake3

from .errors import PathError, TraversalError
from .metrics_manager import MetricManager
from .paths import path_bytes
from .time_block import TimeBlock

# bump the version suffix whenever the record layout changes
DOMAIN_TAG = b"treedigest-v1\0"
FILE_TAG = b"F\0"
METADATA_TAG = b"\0M\0"

DIGEST_SIZE = 32
CHUNK_SIZE = 64 * 1024
MODE_UNAVAILABLE = 0xFFFFFFFF

# mode (u32), mtime seconds (i64), mtime nanoseconds (u32)
_METADATA_STRUCT = struct.Struct("<IqI")


@dataclass(frozen=True)
class Digest:
    value: bytes

    def hexdigest(self) -> str:
        return self.value.hex()

    def __str__(self):
        return self.hexdigest()


def file_content_digest(path) -> bytes:
    """Stream a file through a fresh blake3 hasher, CHUNK_SIZE bytes at a time."""

    hasher = blake3()
    size = 0
    with MetricManager().file_hash_latency().time(), TimeBlock(f"Hashing file {path}", logging.DEBUG) as tb:
        try:
            with open(path, "rb") as f:
                while chunk := f.read(CHUNK_SIZE):
                    hasher.update(chunk)
                    size += len(chunk)
        except OSError as e:
            raise TraversalError(TraversalError.IO, path, e.strerror or str(e)) from e

        tb.append_data("file_size", size, "B", log_rate=True)

    MetricManager().hashed_bytes().inc(size)
    return hasher.digest()


def frame_record(rel_path: str, content_hash: bytes, metadata=None, include_metadata=False) -> bytes:
    """Build the bytes absorbed into the root hasher for one file.

    Layout: b"F\\0" + path + b"\\0" + content hash, then optionally
    b"\\0M\\0" + mode + mtime seconds + mtime nanoseconds. The path is the
    only variable-length field and is always followed by a NUL.
    """
    raw_path = path_bytes(rel_path)
    if b"\0" in raw_path:
        raise PathError(f"Path '{rel_path}' contains a NUL byte")
    if len(content_hash) != DIGEST_SIZE:
        raise PathError(f"Content hash of '{rel_path}' has {len(content_hash)} bytes, expected {DIGEST_SIZE}")

    record = FILE_TAG + raw_path + b"\0" + content_hash

    if include_metadata:
        if metadata is None:
            raise PathError(f"Metadata for '{rel_path}' was not collected")
        mode = MODE_UNAVAILABLE if metadata.mode is None else metadata.mode
        record += METADATA_TAG + _METADATA_STRUCT.pack(mode, metadata.mtime_seconds, metadata.mtime_nanoseconds)

    return record


class DigestFramer:
    """Owns the root accumulator; records must be absorbed in canonical order."""

    def __init__(self, include_metadata=False):
        self.include_metadata = include_metadata
        self.count = 0
        self._finalized = False
        self._root = blake3()
        self._root.update(DOMAIN_TAG)

    def absorb(self, entry, content_hash: bytes):
        if self._finalized:
            raise PathError("Cannot absorb records after the digest was finalized")
        self._root.update(frame_record(entry.relative_path, content_hash, entry.metadata, self.include_metadata))
        self.count += 1

    def finalize(self) -> Digest:
        if self._finalized:
            raise PathError("Digest was already finalized")
        self._finalized = True
        return Digest(self._root.digest())

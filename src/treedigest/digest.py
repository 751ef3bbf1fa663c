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

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Tuple

from . import util
from .config import Config, ResolvedConfig, resolve_config
from .framer import Digest, DigestFramer, file_content_digest
from .metrics_manager import MetricManager
from .time_block import TimeBlock
from .walker import collect_entries


@dataclass(frozen=True)
class DigestReport:
    digest: Digest
    # (content hex digest, relative path), in absorption order
    files: Tuple[Tuple[str, str], ...]

    def lines(self):
        for content_hex, rel_path in self.files:
            yield f"{content_hex}  {rel_path}"


def format_report(report: DigestReport) -> str:
    lines = list(report.lines())
    lines.append(f"{report.digest.hexdigest()}  .")
    return "\n".join(lines) + "\n"


def hash_contents(entries, workers, log_suffix=""):
    """Hash file contents in parallel; results are in the order of `entries`."""
    if not entries:
        return []

    with ThreadPoolExecutor(max_workers=min(workers, len(entries))) as executor:
        futures = [executor.submit(file_content_digest, entry.path) for entry in entries]
        util.wait_futures_and_raise(futures, f"Hashing {len(entries)} files{log_suffix}")

    return [f.result() for f in futures]


def _compute(resolved: ResolvedConfig):
    with MetricManager().tree_digest_latency().time(), TimeBlock(f"Computing digest of {resolved.root}") as tb:
        entries = collect_entries(resolved.root, resolved.matcher,
                                  follow_symlinks=resolved.follow_symlinks,
                                  include_metadata=resolved.include_metadata,
                                  case_insensitive_order=resolved.case_insensitive_order)

        content_hashes = hash_contents(entries, resolved.workers, f" under {resolved.root}")

        # absorption follows the sorted entry order, never completion order
        framer = DigestFramer(resolved.include_metadata)
        for entry, content_hash in zip(entries, content_hashes):
            framer.absorb(entry, content_hash)
        digest = framer.finalize()

        tb.append_data("files", framer.count)
        tb.append_data("blake3_hash", digest.hexdigest())

    return digest, entries, content_hashes


def compute_digest(root, config: Optional[Config] = None) -> Digest:
    """Compute the deterministic digest of the directory tree at `root`.

    Raises ConfigurationError before touching the tree if the configuration
    is unusable, TraversalError if the walk or a read fails, and PathError on
    internal invariant violations. No partial digest is ever returned.
    """
    digest, _, _ = _compute(resolve_config(root, config))
    return digest


def compute_report(root, config: Optional[Config] = None) -> DigestReport:
    """Like compute_digest, but also return each file's content digest."""
    digest, entries, content_hashes = _compute(resolve_config(root, config))
    files = tuple((h.hex(), e.relative_path) for e, h in zip(entries, content_hashes))
    return DigestReport(digest, files)

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

"""Command line entry point.

Examples:
    treedigest
    treedigest ./mydir --ignore "target/**" --ignore-file .treedigestignore --include-metadata
    treedigest ./mydir --config treedigest.yaml --report
"""

import argparse
import dataclasses
import datetime
import logging
import os
import sys

from . import __version__, util
from .config import Config, read_config
from .digest import compute_digest, compute_report, format_report
from .errors import TreeDigestError
from .ignore import DEFAULT_IGNORE_FILE

EXIT_OK = 0
EXIT_FAILED = 1

_FLAGS = ("follow_symlinks", "include_metadata", "case_insensitive_order")


def build_parser():
    parser = argparse.ArgumentParser(prog="treedigest",
                                     description="Compute a deterministic blake3 digest of a directory tree.")
    parser.add_argument("dir", nargs="?", default=".", help="directory to hash (default: .)")
    parser.add_argument("--ignore", action="append", default=[], metavar="PATTERN",
                        help="glob pattern to ignore, relative to DIR (can repeat)")
    parser.add_argument("--ignore-file", action="append", default=[], metavar="FILE",
                        help="load ignore patterns from a file (can repeat)")
    parser.add_argument("--config", metavar="FILE", help="YAML config file; flags override it")
    parser.add_argument("--follow-symlinks", action="store_true", help="follow symlinks while walking")
    parser.add_argument("--include-metadata", action="store_true", help="include mode and mtime in the digest")
    parser.add_argument("--case-insensitive-order", action="store_true",
                        help="order files ignoring ASCII case (paths are still hashed as-is)")
    parser.add_argument("--no-dotfile", action="store_true", help=f"do not auto-load {DEFAULT_IGNORE_FILE} from DIR")
    parser.add_argument("--workers", type=int, metavar="N", help="number of files hashed in parallel")
    parser.add_argument("--report", action="store_true", help="print one line per hashed file before the root digest")
    parser.add_argument("--log-level", metavar="LEVEL", help="logging level (default: $LOG_LEVEL or WARNING)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(args) -> Config:
    """Apply command line flags on top of the optional config file."""
    base = read_config(args.config) if args.config else Config()

    changes = {}
    if args.ignore:
        changes["ignore_patterns"] = base.ignore_patterns + tuple(args.ignore)
    if args.ignore_file:
        changes["ignore_files"] = base.ignore_files + tuple(args.ignore_file)
    for flag in _FLAGS:
        if getattr(args, flag):
            changes[flag] = True
    if args.no_dotfile:
        changes["load_default_ignore_file"] = False
    if args.workers is not None:
        changes["workers"] = args.workers

    return dataclasses.replace(base, **changes)


def _write_stdout(text):
    """Write `text` to stdout as file system bytes, so undecodable names print as they are stored."""
    sys.stdout.flush()
    sys.stdout.buffer.write(os.fsencode(text))
    sys.stdout.buffer.flush()


def main(argv=None):
    args = build_parser().parse_args(argv)
    util.init_logging(args.log_level)

    try:
        config = build_config(args)
        if args.report:
            _write_stdout(format_report(compute_report(args.dir, config)))
        else:
            digest = compute_digest(args.dir, config)
            _write_stdout(f"{digest.hexdigest()}  {args.dir}\n")
    except TreeDigestError as e:
        logging.error(f"{type(e).__name__}: {e}")
        return EXIT_FAILED

    utc_now = datetime.datetime.now(datetime.timezone.utc)
    print(f"ok  {utc_now.isoformat()}  {args.dir}", file=sys.stderr)
    return EXIT_OK

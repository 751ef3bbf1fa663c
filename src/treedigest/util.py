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

import concurrent.futures
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(process)04X:%(thread)04X [%(levelname)-3.3s] %(module)s.%(funcName)s(%(lineno)d): %(message)s"


def init_logging(level=None):
    """Configure root logging on stderr; stdout is reserved for digests.

    The level comes from `level` or the LOG_LEVEL environment variable and
    defaults to WARNING so that command-line output stays clean.
    """
    level_str = level or os.getenv("LOG_LEVEL", "WARNING")
    # surprisingly getLevelName works in both directions
    level_num = logging.getLevelName(level_str.upper())
    if not isinstance(level_num, int):
        print(f"Invalid LOG_LEVEL '{level_str}', using default: WARNING", file=sys.stderr, flush=True)
        level_num = logging.WARNING

    # need to reset first for basicConfig to have any effect
    logging.getLogger().handlers.clear()
    logging.basicConfig(level=level_num,
                        format=LOG_FORMAT,
                        datefmt="%Y-%m-%d %H:%M:%S",
                        handlers=[logging.StreamHandler(sys.stderr)])
    return level_num


def try_parse_int(s: str):
    try:
        return int(s)
    except ValueError:
        return s


def expand_env_variables(config):
    """
    Recursively expand environment variables in the configuration.
    """
    if isinstance(config, dict):
        return {k: expand_env_variables(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [expand_env_variables(v) for v in config]
    elif isinstance(config, str):
        return os.path.expandvars(config)
    return config


def get_max_workers():
    cpus = os.cpu_count() or 1
    # hashing is mostly I/O bound, so 4 workers even on small machines
    workers = max(4, cpus // 6)
    logging.debug(f"Using {workers} workers (with {cpus} CPUs available)")
    return workers


def wait_futures(futures, log_suffix):
    """Wait for all futures; return the failed ones in submission order."""
    concurrent.futures.wait(futures)
    failures = [f for f in futures if f.cancelled() or f.exception() is not None]
    if not failures:
        logging.debug(f"Successful: {log_suffix}")
        return []

    logging.warning(f"Failed: {log_suffix}, {len(failures)} failures")
    for f in failures:
        logging.debug(f"Failed: {'cancelled' if f.cancelled() else f.exception()}")
    return failures


def wait_futures_and_raise(futures, log_suffix):
    """Like wait_futures, but re-raise the first failure in submission order."""
    failures = wait_futures(futures, log_suffix)
    if failures:
        # result() re-raises the worker's exception with its traceback
        failures[0].result()

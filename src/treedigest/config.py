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
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

from . import util
from .errors import ConfigurationError
from .ignore import DEFAULT_IGNORE_FILE, IgnoreMatcher, compile_patterns, load_ignore_file
from .paths import normalize_separators

# YAML key -> Config field
CONFIG_KEYS = {
    "ignore-patterns": "ignore_patterns",
    "ignore-files": "ignore_files",
    "load-default-ignore-file": "load_default_ignore_file",
    "include-metadata": "include_metadata",
    "follow-symlinks": "follow_symlinks",
    "case-insensitive-order": "case_insensitive_order",
    "workers": "workers",
}


def _as_tuple(name, value, item_types):
    if isinstance(value, (str, bytes)) or not isinstance(value, (list, tuple)):
        raise ConfigurationError(f"'{name}' must be a list, got {type(value).__name__}")
    for item in value:
        if not isinstance(item, item_types):
            raise ConfigurationError(f"'{name}' entries must be strings, got {item!r}")
    return tuple(value)


@dataclass(frozen=True)
class Config:
    ignore_patterns: Tuple[str, ...] = ()
    ignore_files: Tuple[str, ...] = ()
    load_default_ignore_file: bool = True
    include_metadata: bool = False
    follow_symlinks: bool = False
    case_insensitive_order: bool = False
    # None picks a worker count from the number of CPUs
    workers: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "ignore_patterns", _as_tuple("ignore_patterns", self.ignore_patterns, str))
        object.__setattr__(self, "ignore_files", _as_tuple("ignore_files", self.ignore_files, (str, os.PathLike)))

        for name in ("load_default_ignore_file", "include_metadata", "follow_symlinks", "case_insensitive_order"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigurationError(f"'{name}' must be true or false, got {getattr(self, name)!r}")

        if self.workers is not None:
            if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
                raise ConfigurationError(f"'workers' must be a positive integer, got {self.workers!r}")


@dataclass(frozen=True)
class ResolvedConfig:
    """Everything a computation needs, fixed before the walk starts."""

    root: Path
    patterns: Tuple[str, ...]
    matcher: IgnoreMatcher = field(repr=False)
    include_metadata: bool
    follow_symlinks: bool
    case_insensitive_order: bool
    workers: int


def resolve_config(root, config: Optional[Config] = None) -> ResolvedConfig:
    """Merge all ignore sources and compile them.

    Order: inline patterns, then the ignore files in the order given, then
    the default ignore file found at the root. Any problem raises
    ConfigurationError before the tree is read.
    """
    config = config or Config()
    root = Path(root).resolve()

    patterns = [normalize_separators(p) for p in config.ignore_patterns]

    for ignore_file in config.ignore_files:
        if not Path(ignore_file).is_file():
            raise ConfigurationError(f"Ignore file '{ignore_file}' does not exist or is not a file")
        patterns += load_ignore_file(ignore_file)

    if config.load_default_ignore_file:
        default_file = root / DEFAULT_IGNORE_FILE
        if default_file.is_file():
            patterns += load_ignore_file(default_file)
        else:
            logging.debug(f"No default ignore file at {default_file}")

    matcher = compile_patterns(patterns)

    return ResolvedConfig(
        root=root,
        patterns=tuple(matcher.patterns),
        matcher=matcher,
        include_metadata=config.include_metadata,
        follow_symlinks=config.follow_symlinks,
        case_insensitive_order=config.case_insensitive_order,
        workers=config.workers or util.get_max_workers(),
    )


def read_config(file_name) -> Config:
    """Load a Config from a YAML file with hyphenated keys.

    Environment variables in string values are expanded, and relative
    ignore-files entries are taken relative to the config file.
    """
    try:
        with open(file_name, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file '{file_name}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config file '{file_name}' is not valid YAML: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Config file '{file_name}' must contain a mapping")

    logging.debug(f"Config raw: {raw}")
    raw = util.expand_env_variables(raw)

    unknown = sorted(str(k) for k in raw if k not in CONFIG_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown keys in config file '{file_name}': {', '.join(unknown)}")

    kwargs = {CONFIG_KEYS[k]: v for k, v in raw.items()}

    if isinstance(kwargs.get("workers"), str):
        kwargs["workers"] = util.try_parse_int(kwargs["workers"])

    if isinstance(kwargs.get("ignore_files"), list):
        base_dir = Path(file_name).parent
        kwargs["ignore_files"] = [str(base_dir / f) if isinstance(f, str) else f for f in kwargs["ignore_files"]]

    config = Config(**kwargs)
    logging.debug(f"Config expanded: {config}")
    return config

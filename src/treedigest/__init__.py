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

__version__ = "0.1.0"

from .config import Config, read_config, resolve_config
from .digest import DigestReport, compute_digest, compute_report, format_report
from .errors import ConfigurationError, PathError, PatternError, TraversalError, TreeDigestError
from .framer import Digest
from .ignore import DEFAULT_IGNORE_FILE, compile_patterns, load_ignore_file

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

import threading

from prometheus_client import Counter, Histogram, utils

TREE_DIGEST_SECONDS = "treedigest_duration_seconds"
FILE_HASH_SECONDS = "treedigest_file_hash_seconds"
HASHED_BYTES = "treedigest_hashed_bytes"

QUICK_BUCKETS = (
    0.1, 0.5, 1.0, 5.0,
    10.0, 30.0, 60.0, 120.0, 300.0, 600.0,
    utils.INF,
)

FILE_BUCKETS = (
    0.001, 0.005, 0.01, 0.05, 0.1, 0.5,
    1.0, 5.0, 15.0, 60.0,
    utils.INF,
)


class MetricManager:
    """Process-wide registry of the metrics we emit.

    prometheus_client refuses to register the same metric name twice, so
    instances are created once and shared.
    """

    _instances = {}
    _lock = threading.Lock()

    def histogram_client(self, metric_name: str, description: str, buckets, labels=()) -> Histogram:
        with MetricManager._lock:
            if metric_name not in MetricManager._instances:
                MetricManager._instances[metric_name] = Histogram(
                    name=metric_name, documentation=description, buckets=buckets, labelnames=labels)
            return MetricManager._instances[metric_name]

    def counter_client(self, metric_name: str, description: str, labels=()) -> Counter:
        with MetricManager._lock:
            if metric_name not in MetricManager._instances:
                MetricManager._instances[metric_name] = Counter(
                    name=metric_name, documentation=description, labelnames=labels)
            return MetricManager._instances[metric_name]

    def tree_digest_latency(self) -> Histogram:
        return self.histogram_client(TREE_DIGEST_SECONDS, "time to compute the digest of a directory tree", QUICK_BUCKETS)

    def file_hash_latency(self) -> Histogram:
        return self.histogram_client(FILE_HASH_SECONDS, "time to hash the content of one file", FILE_BUCKETS)

    def hashed_bytes(self) -> Counter:
        # prometheus_client appends the "_total" suffix for counters
        return self.counter_client(HASHED_BYTES, "bytes of file content hashed")

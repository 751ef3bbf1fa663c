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
import time

import humanize
import humanize.filesize


def format_value(value, unit="", duration=0.0, log_rate=False):
    """Render a measured value for a log line, e.g. "1.5 MiB @ 300.0 MiB/s"."""
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return str(value)

    if duration <= 0:
        log_rate = False

    if unit == "s":
        return f"{value:.3f} s ({humanize.precisedelta(value, minimum_unit='milliseconds')})"

    if unit == "B":
        hum = humanize.filesize.naturalsize(value, binary=True)
        if log_rate:
            hum += f" @ {humanize.filesize.naturalsize(value / duration, binary=True)}/s"
        return hum

    hum = humanize.intcomma(value)
    if unit:
        hum += f" {unit}"
    if log_rate:
        hum += f" @ {humanize.intcomma(value / duration, 3)} {unit + '/s' if unit else '/ s'}"
    return hum


class TimeBlock:
    """Logs "+ msg" on entry and "- msg; duration=...; key=value..." on exit.

    A failing block is logged with a "! " prefix and the exception type; the
    exception itself is never suppressed.
    """

    def __init__(self, msg, level=logging.INFO) -> None:
        self.msg = msg
        self.level = level
        self.data = {}
        self.duration = 0.0

    def __enter__(self):
        logging.log(self.level, f"+ {self.msg}", stacklevel=2)
        self.start_time = time.monotonic()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.duration = time.monotonic() - self.start_time
        self.append_data("duration", self.duration, "s")

        msg = f"! {self.msg} ({exc_type.__name__})" if exc_type else f"- {self.msg}"
        for key, (value, unit, log_rate) in self.data.items():
            msg += f"; {key}={format_value(value, unit, self.duration, log_rate)}"

        logging.log(self.level, msg, stacklevel=2)
        return False

    def append_data(self, key, value, unit="", log_rate=False):
        self.data[key] = (value, unit, log_rate)

# Copyright 2018 Datawire. All rights reserved.
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
# limitations under the License

import logging
import re
import time
from typing import Any, Callable, List, Optional, Union

import orjson
import yaml
from prometheus_client import Gauge

logger = logging.getLogger("routegen.utils")
logger.setLevel(logging.INFO)

# XXX There doesn't seem to be a way to convince mypy that SafeLoader and
# CSafeLoader share a base class, even though they do.

yaml_loader: Any = yaml.SafeLoader

try:
    yaml_loader = yaml.CSafeLoader
except AttributeError:
    pass


def parse_yaml(serialization: str) -> Any:
    return list(yaml.load_all(serialization, Loader=yaml_loader))


def parse_json(serialization: Union[str, bytes]) -> Any:
    return orjson.loads(serialization)


def dump_json(obj: Any, pretty=False) -> str:
    if pretty:
        return bytes.decode(
            orjson.dumps(
                obj, option=orjson.OPT_NON_STR_KEYS | orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2
            )
        )
    else:
        return bytes.decode(orjson.dumps(obj, option=orjson.OPT_NON_STR_KEYS))


_true_strings = frozenset(["y", "yes", "t", "true", "on", "1"])
_false_strings = frozenset(["n", "no", "f", "false", "off", "0"])


def parse_bool(s: Optional[Union[str, bool]]) -> bool:
    """
    Parse a boolean value from a string. T, True, Y, y, yes, on, 1 return True;
    other things return False.
    """

    # If `s` is already a bool, return its value.
    #
    # This allows a caller to not know or care whether their value is already
    # a boolean, or if it is a string that needs to be parsed below.
    if isinstance(s, bool):
        return s

    # If we didn't get anything at all, return False.
    if not s:
        return False

    val = s.strip().lower()

    if val in _true_strings:
        return True

    if val not in _false_strings:
        logger.debug("parse_bool: %r is not a boolean, treating it as False", s)

    return False


class Timer:
    """
    Times one phase of a routegen run, e.g. loading the snapshot or writing
    the map files. Each pass through a `with timer:` block is one cycle:

    with Timer("map generation", registry) as t:
        write_maps(...)

    If a prometheus registry is given, the most recent cycle is also
    exported as the gauge routegen_<name>_time_seconds, with the name's
    whitespace turned into underscores.
    """

    def __init__(
        self,
        name: str,
        prom_metrics_registry: Optional[Any] = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self.name = name
        self.clock = clock
        self.durations: List[float] = []
        self._started: Optional[float] = None
        self._gauge: Optional[Gauge] = None

        if prom_metrics_registry:
            metric_name = re.sub(r"\s+", "_", name).lower()
            self._gauge = Gauge(
                f"{metric_name}_time_seconds",
                f"Seconds taken by the most recent {name} run",
                namespace="routegen",
                registry=prom_metrics_registry,
            )

    def __enter__(self) -> "Timer":
        self._started = self.clock()
        return self

    def __exit__(self, *exc_info) -> None:
        if self._started is None:
            return

        elapsed = self.clock() - self._started
        self._started = None
        self.durations.append(elapsed)

        if self._gauge:
            self._gauge.set(elapsed)

    def summary(self) -> str:
        if not self.durations:
            return f"{self.name}: never run"

        return "%s: %d run%s, %.3f/%.3f/%.3f sec min/avg/max" % (
            self.name,
            len(self.durations),
            "" if len(self.durations) == 1 else "s",
            min(self.durations),
            sum(self.durations) / len(self.durations),
            max(self.durations),
        )

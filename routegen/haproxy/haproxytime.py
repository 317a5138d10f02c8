# Copyright 2021 Datawire. All rights reserved.
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

import datetime
import re
from typing import Dict

import durationpy

########
# HAProxy time values are an unsigned integer with an optional unit. No unit
# means milliseconds. There are no fractions, no signs, and no compound
# values like "1h30m".
#
# Durations are bounded by what fits in a signed 64-bit count of nanoseconds,
# and separately by the largest timeout HAProxy itself accepts, which is
# 2^31-1 milliseconds.
########

HAPROXY_MAX_TIMEOUT = "2147483647ms"
HAPROXY_DEFAULT_TIMEOUT = "5s"

MAX_DURATION_NS = (1 << 63) - 1

_duration_re = re.compile(r"([0-9]+)(us|ms|s|m|h|d)?")

_unit_ns: Dict[str, int] = {
    "us": 1000,
    "ms": 1000 * 1000,
    "s": 1000 * 1000 * 1000,
    "m": 60 * 1000 * 1000 * 1000,
    "h": 60 * 60 * 1000 * 1000 * 1000,
    "d": 24 * 60 * 60 * 1000 * 1000 * 1000,
}


class DurationSyntaxError(ValueError):
    """
    The value is not an HAProxy time value at all.
    """


class DurationOverflowError(OverflowError):
    """
    The value is syntactically fine, but too big to represent.
    """


def parse_duration(value: str) -> datetime.timedelta:
    """
    Parse an HAProxy time value into a timedelta.

    :param value: e.g. "10s", "500" (milliseconds), "1d"
    :raises DurationSyntaxError: if value isn't an HAProxy time value
    :raises DurationOverflowError: if value is larger than a signed 64-bit
        nanosecond count
    """

    match = _duration_re.fullmatch(value)

    if not match:
        raise DurationSyntaxError(f"invalid duration {value!r}")

    count = int(match.group(1))
    unit = match.group(2) or "ms"

    if count * _unit_ns[unit] > MAX_DURATION_NS:
        raise DurationOverflowError(f"duration {value!r} overflows")

    if count == 0:
        return datetime.timedelta()

    # Days go through as hours.
    if unit == "d":
        return durationpy.from_str(f"{count * 24}h")

    return durationpy.from_str(f"{count}{unit}")


HAPROXY_MAX_TIMEOUT_DURATION = parse_duration(HAPROXY_MAX_TIMEOUT)
HAPROXY_DEFAULT_TIMEOUT_DURATION = parse_duration(HAPROXY_DEFAULT_TIMEOUT)

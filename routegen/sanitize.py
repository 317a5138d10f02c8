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

########
# Sanitizers for route annotation values. Annotations are written by
# whoever owns the route, so none of these is allowed to raise: a bad value
# gets logged and replaced with something safe, and the rest of the
# configuration renders as usual.
########

import logging
import os
import re

from .haproxy import (
    HAPROXY_DEFAULT_TIMEOUT,
    HAPROXY_MAX_TIMEOUT,
    HAPROXY_MAX_TIMEOUT_DURATION,
    CIDRRange,
    DurationOverflowError,
    DurationSyntaxError,
    parse_duration,
)

logger = logging.getLogger("routegen.sanitize")

_true_values = frozenset(["1", "t", "T", "TRUE", "true", "True"])
_integer_re = re.compile(r"[+-]?[0-9]+")
_int64_min = -(2**63)
_int64_max = 2**63 - 1


def is_true(s: str) -> bool:
    """
    Report whether s is one of the spellings of true that route annotations
    have always accepted (1, t, T, TRUE, true, True). Anything else,
    including garbage, is false.
    """
    return s in _true_values


def is_integer(s: str) -> bool:
    """
    Report whether s is a decimal integer that fits in a signed 64-bit int.
    """

    if not _integer_re.fullmatch(s):
        return False

    return _int64_min <= int(s) <= _int64_max


def env(name: str, *defaults: str) -> str:
    """
    Return the environment variable name if it's set and non-empty,
    otherwise the first non-empty default, otherwise "".
    """

    value = os.environ.get(name, "")

    if value:
        return value

    for default in defaults:
        if default:
            return default

    return ""


def clip_haproxy_timeout_value(val: str) -> str:
    """
    Keep timeout annotations within what HAProxy will accept.

    Returns val itself if it's a valid time no larger than HAProxy's maximum,
    HAPROXY_MAX_TIMEOUT if it's larger, "" if it isn't a time value at all
    (so that the template falls back to its own default), and
    HAPROXY_DEFAULT_TIMEOUT for any other parse failure.
    """

    if not val:
        return val

    try:
        duration = parse_duration(val)
    except DurationOverflowError:
        logger.info(
            "route annotation time value %s exceeds maximum allowable format, clipping to %s",
            val,
            HAPROXY_MAX_TIMEOUT,
        )
        return HAPROXY_MAX_TIMEOUT
    except DurationSyntaxError as e:
        logger.error(
            "route annotation time value %s ignored or defaulted because value is invalid: %s",
            val,
            e,
        )
        return ""
    except ValueError as e:
        logger.info(
            "invalid route annotation time value %s, setting to %s: %s",
            val,
            HAPROXY_DEFAULT_TIMEOUT,
            e,
        )
        return HAPROXY_DEFAULT_TIMEOUT

    if duration > HAPROXY_MAX_TIMEOUT_DURATION:
        logger.info(
            "route annotation time value %s exceeds maximum allowable by HAProxy, clipping to %s",
            val,
            HAPROXY_MAX_TIMEOUT,
        )
        return HAPROXY_MAX_TIMEOUT

    return val


def parse_ip_list(ip_list: str) -> str:
    """
    Parse a whitespace-separated list of IPs and CIDRs (v4 or v6), returning
    the valid ones joined by single spaces.

    A list with leading or trailing whitespace is rejected outright rather
    than trimmed, which is how the old regex-based template check behaved.
    """

    logger.debug("parse_ip_list called with %r", ip_list)

    trimmed = ip_list.strip()

    if not trimmed:
        logger.info("parse_ip_list: empty list found")
        return ""

    if trimmed != ip_list:
        logger.info("parse_ip_list: leading/trailing spaces found in %r", ip_list)
        return ""

    valid_ips = []

    for ip in ip_list.split():
        cidrrange = CIDRRange(ip)

        if cidrrange:
            valid_ips.append(ip)
        else:
            logger.info("parse_ip_list: found invalid IP/CIDR %s: %s", ip, cidrrange.error)

    if not valid_ips:
        logger.info("parse_ip_list: no valid IP/CIDR in %r", ip_list)
        return ""

    result = " ".join(valid_ips)
    logger.debug("parse_ip_list parsed the list: %s", result)
    return result


def indent(text: str, spaces: int) -> str:
    """
    Prefix every non-empty line of text with the given number of spaces.
    Empty lines stay empty. If spaces isn't positive, text is returned
    unchanged.
    """

    if not text:
        return ""

    if spaces <= 0:
        return text

    padding = " " * spaces

    return "\n".join((padding + line) if line else line for line in text.split("\n"))


def process_rewrite_target(val: str) -> str:
    """
    Sanitize a rewrite-target annotation for use inside a single-quoted
    string in the HAProxy configuration.

    - '%' is doubled, since HAProxy would read it as a log-format variable.
    - An unescaped '#' starts a comment, so it and everything after it goes.
    - A single trailing backslash would escape the closing quote, so it goes.
    - "'" is written as '\\'' to close, escape and reopen the quoted string,
      whether or not a backslash precedes it.

    Only "\\\\" and "\\#" are kept as escape pairs. Any other backslash is
    copied as is and the character after it is sanitized like any other, so
    "\\1" passes through untouched but "\\'" still can't close the string.
    """

    out = []
    i = 0

    while i < len(val):
        c = val[i]

        if c == "\\":
            if i + 1 >= len(val):
                logger.info("process_rewrite_target: dropping trailing backslash in %r", val)
                break

            if val[i + 1] in "\\#":
                out.append(val[i : i + 2])
                i += 2
                continue

            out.append(c)
            i += 1
            continue

        if c == "#":
            logger.info("process_rewrite_target: dropping comment in %r", val)
            break

        if c == "%":
            out.append("%%")
        elif c == "'":
            out.append("'\\''")
        else:
            out.append(c)

        i += 1

    return "".join(out)

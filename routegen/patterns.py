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

import logging
import re
import threading
from typing import Dict, Pattern


class PatternCache:
    """
    A cache of compiled regular expressions, keyed by pattern text.

    Templates call the matching helpers with the same handful of
    operator-supplied patterns once per route, per render, so compiling
    them every time is enormously expensive. Entries are never evicted:
    the set of distinct patterns is bounded by configuration, not by
    traffic.

    Lookups don't take the cache lock. Inserts do, and the first compiled
    Pattern stored for a given text is the one everybody gets from then
    on, even if two threads raced to compile it.

    The hit and miss counters have a lock of their own, so they stay exact
    without making lookups wait on inserts.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self.logger = logger
        self.compiled: Dict[str, Pattern[str]] = {}
        self.lock = threading.Lock()
        self.stats_lock = threading.Lock()

        self.reset_stats()

    def reset_stats(self) -> None:
        with self.stats_lock:
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        return len(self.compiled)

    def __contains__(self, pattern: str) -> bool:
        return pattern in self.compiled

    def compile(self, pattern: str) -> Pattern[str]:
        """
        Return the compiled form of pattern, compiling it only if we've never
        seen it before.

        :raises re.error: if pattern isn't a valid regular expression
        """

        compiled = self.compiled.get(pattern)

        if compiled is not None:
            with self.stats_lock:
                self.hits += 1

            return compiled

        with self.stats_lock:
            self.misses += 1

        self.logger.debug("compiling regexp %r", pattern)

        # Compile outside the lock; a failure here is the caller's problem
        # and leaves nothing behind.
        compiled = re.compile(pattern)

        with self.lock:
            return self.compiled.setdefault(pattern, compiled)


logger = logging.getLogger("routegen.patterns")

# The process-wide cache behind all the module-level helpers.
pattern_cache = PatternCache(logger)


def anchored(pattern: str) -> str:
    return r"\A(?:" + pattern + r")\Z"


def match_string(pattern: str, s: str) -> bool:
    """
    Report whether s contains any match for pattern.

    :raises re.error: if pattern isn't a valid regular expression
    """
    return pattern_cache.compile(pattern).search(s) is not None


def match_pattern(pattern: str, s: str) -> bool:
    """
    Report whether all of s matches pattern. An invalid pattern matches
    nothing.
    """

    logger.debug("match_pattern called: pattern %r, s %r", pattern, s)

    try:
        status = match_string(anchored(pattern), s)
    except re.error as e:
        logger.error("error with regex pattern %r in call to matchPattern: %s", pattern, e)
        return False

    logger.debug("match_pattern returning %s", status)
    return status


def first_match(pattern: str, *values: str) -> str:
    """
    Return the first of values (in the order given) that pattern matches in
    its entirety, or "" if none does or the pattern is invalid.
    """

    logger.debug("first_match called: pattern %r, values %r", pattern, values)

    try:
        compiled = pattern_cache.compile(anchored(pattern))
    except re.error as e:
        logger.error("error with regex pattern %r in call to firstMatch: %s", pattern, e)
        return ""

    for value in values:
        if compiled.search(value):
            logger.debug("first_match returning %r", value)
            return value

    logger.debug("first_match returning empty string")
    return ""


def match_values(s: str, *allowed_values: str) -> bool:
    logger.debug("match_values called: s %r, allowed_values %r", s, allowed_values)

    if s in allowed_values:
        logger.debug("match_values finds matching string %r", s)
        return True

    logger.debug("match_values cannot match string %r", s)
    return False

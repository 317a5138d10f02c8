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

import dataclasses
import inspect
import logging
from typing import Any, Callable, Dict, Iterator, Optional

from .aliases import (
    endpoints_for_alias,
    get_http_aliases_grouped_by_host,
    get_primary_alias_key,
    process_endpoints_for_alias,
)
from .maps import generate_haproxy_allowlist_file, generate_haproxy_map, validate_haproxy_allowlist
from .patterns import first_match, match_pattern, match_values
from .regexps import (
    gen_certificate_host_name,
    gen_subdomain_wildcard_regexp,
    generate_backend_name_prefix,
    generate_route_regexp,
)
from .sanitize import (
    clip_haproxy_timeout_value,
    env,
    indent,
    is_integer,
    is_true,
    parse_ip_list,
    process_rewrite_target,
)

logger = logging.getLogger("routegen.helpers")


@dataclasses.dataclass(frozen=True)
class Helper:
    """
    One named template helper. min_args and max_args are worked out from the
    function's signature when it's registered; max_args is None for helpers
    that take any number of trailing arguments.
    """

    name: str
    fn: Callable[..., Any]
    min_args: int
    max_args: Optional[int]
    description: str

    def accepts(self, nargs: int) -> bool:
        if nargs < self.min_args:
            return False

        return (self.max_args is None) or (nargs <= self.max_args)

    def __call__(self, *args: Any) -> Any:
        if not self.accepts(len(args)):
            raise TypeError(f"template helper {self.name} called with {len(args)} arguments")

        return self.fn(*args)


class HelperRegistry:
    """
    The fixed table of helpers the template engine can call by name.

    Helpers are registered once, at startup; registering a name twice, or a
    function whose signature can't be called positionally, is an error.
    """

    def __init__(self) -> None:
        self.helpers: Dict[str, Helper] = {}

    def register(self, name: str, fn: Callable[..., Any], description: str = "") -> Helper:
        if name in self.helpers:
            raise RuntimeError(f"template helper {name} is already registered")

        min_args = 0
        max_args: Optional[int] = 0

        for param in inspect.signature(fn).parameters.values():
            if param.kind == param.VAR_POSITIONAL:
                max_args = None
            elif param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD):
                if param.default is param.empty:
                    min_args += 1

                if max_args is not None:
                    max_args += 1
            elif param.default is param.empty:
                raise RuntimeError(
                    f"template helper {name}: keyword-only parameter {param.name} has no default"
                )

        helper = Helper(
            name=name, fn=fn, min_args=min_args, max_args=max_args, description=description
        )
        self.helpers[name] = helper

        logger.debug("registered template helper %s (%d..%s args)", name, min_args, max_args)
        return helper

    def lookup(self, name: str) -> Helper:
        helper = self.helpers.get(name)

        if not helper:
            raise KeyError(f"no template helper named {name}")

        return helper

    def call(self, name: str, *args: Any) -> Any:
        return self.lookup(name)(*args)

    def __contains__(self, name: str) -> bool:
        return name in self.helpers

    def __iter__(self) -> Iterator[str]:
        return iter(self.helpers)

    def __len__(self) -> int:
        return len(self.helpers)

    def as_dict(self) -> Dict[str, Callable[..., Any]]:
        """
        Return name => callable, for template engines that want a plain
        function map.
        """
        return dict(self.helpers)


def default_helpers() -> HelperRegistry:
    registry = HelperRegistry()

    for name, fn, description in [
        ("endpointsForAlias", endpoints_for_alias, "returns the list of valid endpoints"),
        (
            "processEndpointsForAlias",
            process_endpoints_for_alias,
            "returns the list of valid endpoints after processing them",
        ),
        ("env", env, "returns an environment variable, or the first non-empty default"),
        ("matchPattern", match_pattern, "anchors a regular expression and matches a string"),
        ("isInteger", is_integer, "determines if a given value is an integer"),
        ("matchValues", match_values, "compares a string to a list of allowed strings"),
        (
            "genSubdomainWildcardRegexp",
            gen_subdomain_wildcard_regexp,
            "generates a regexp matching the subdomain of a wildcard route",
        ),
        ("generateRouteRegexp", generate_route_regexp, "generates a regexp matching route hosts"),
        (
            "genCertificateHostName",
            gen_certificate_host_name,
            "generates the host name used to match certificates",
        ),
        ("genBackendNamePrefix", generate_backend_name_prefix, "generates a backend name prefix"),
        ("isTrue", is_true, "determines if a given value is true"),
        (
            "firstMatch",
            first_match,
            "returns the first value an anchored regular expression matches, or empty",
        ),
        (
            "getHTTPAliasesGroupedByHost",
            get_http_aliases_grouped_by_host,
            "returns HTTP(S) aliases grouped by host",
        ),
        ("getPrimaryAliasKey", get_primary_alias_key, "returns the primary alias for a host"),
        ("generateHAProxyMap", generate_haproxy_map, "generates haproxy map contents"),
        (
            "validateHAProxyAllowlist",
            validate_haproxy_allowlist,
            "validates a haproxy allowlist (acl)",
        ),
        (
            "generateHAProxyAllowlistFile",
            generate_haproxy_allowlist_file,
            "generates a haproxy allowlist file for use in an acl",
        ),
        (
            "clipHAProxyTimeoutValue",
            clip_haproxy_timeout_value,
            "clips timeout values to the maximum haproxy allows",
        ),
        ("parseIPList", parse_ip_list, "parses a list of IPs/CIDRs"),
        ("indent", indent, "indents a multiline string"),
        (
            "processRewriteTarget",
            process_rewrite_target,
            "sanitizes the rewrite-target annotation",
        ),
    ]:
        registry.register(name, fn, description)

    return registry


helper_functions = default_helpers()

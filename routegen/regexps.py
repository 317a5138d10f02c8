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
# Regex and host name generators for route hosts. The regexes produced here
# end up as keys in HAProxy map files, so they have to be byte-for-byte
# stable: quote_meta escapes exactly the regex metacharacters and nothing
# else (re.escape would also escape '-', '#', '&', '~' and whitespace).
#
# gen_subdomain_wildcard_regexp is legacy, kept so that older templates
# keep rendering.
########

import logging
from typing import Union

from .model import TLSTermination

logger = logging.getLogger("routegen.regexps")

_special_chars = frozenset("\\.+*?()|[]{}^$")


def quote_meta(s: str) -> str:
    """
    Escape every regex metacharacter in s.
    """
    return "".join(("\\" + c) if c in _special_chars else c for c in s)


def get_domain_for_host(host: str) -> str:
    """
    Return the parent domain of host, i.e. everything after the first dot.
    Single-label hosts have no parent domain, so get "".
    """

    idx = host.find(".")

    if idx < 0:
        return ""

    return host[idx + 1 :]


def gen_subdomain_wildcard_regexp(hostname: str, path: str, exact_path: bool) -> str:
    """
    Generate a regular expression matching any host in the same subdomain as
    hostname, followed by path (and, unless exact_path, anything under path).
    """

    subdomain = get_domain_for_host(hostname)

    if not subdomain:
        logger.warning(
            "generating subdomain wildcard regexp - invalid host name %s", hostname
        )
        return f"{hostname}{path}"

    expr = quote_meta(f".{subdomain}{path}")

    if exact_path:
        return f"^[^\\.]*{expr}$"

    return f"^[^\\.]*{expr}(|/.*)$"


def generate_route_regexp(hostname: str, path: str, wildcard: bool) -> str:
    """
    Generate a regular expression matching a route's host (with an optional
    port) and path.
    """

    host_re = quote_meta(hostname)

    if wildcard:
        subdomain = get_domain_for_host(hostname)

        if not subdomain:
            logger.warning("generating route regexp - invalid wildcard host name %s", hostname)
        else:
            host_re = "[^\\.]*" + quote_meta(f".{subdomain}")

    port_re = "(:[0-9]+)?"

    # A path of nothing but slashes matches the root request "" as well.
    if not path.rstrip("/"):
        path_re = ""
        subpath_re = "(/.*)?"
    elif path.endswith("/"):
        path_re = quote_meta(path)
        subpath_re = "(.*)?"
    else:
        path_re = quote_meta(path)
        subpath_re = "(/.*)?"

    return "^" + host_re + port_re + path_re + subpath_re + "$"


def gen_certificate_host_name(hostname: str, wildcard: bool) -> str:
    """
    Return the host name used to select a certificate: "*.<subdomain>" for
    wildcard routes, otherwise hostname itself.
    """

    if wildcard:
        idx = hostname.find(".")

        if idx > 0:
            return f"*.{hostname[idx + 1:]}"

    return hostname


def generate_backend_name_prefix(termination: Union[TLSTermination, str]) -> str:
    if isinstance(termination, str):
        try:
            termination = TLSTermination(termination)
        except ValueError:
            logger.debug("unknown termination %r, using be_http", termination)
            return "be_http"

    if termination == TLSTermination.EDGE:
        return "be_edge_http"

    if termination == TLSTermination.REENCRYPT:
        return "be_secure"

    if termination == TLSTermination.PASSTHROUGH:
        return "be_tcp"

    return "be_http"

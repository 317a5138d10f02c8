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
import logging
from typing import Callable, Dict, List, Optional, Tuple

from ..model import InsecureEdgeTerminationPolicy, TLSTermination
from ..regexps import gen_certificate_host_name, generate_backend_name_prefix, generate_route_regexp
from .cidrrange import CIDRRange

logger = logging.getLogger("routegen.haproxy")


@dataclasses.dataclass(frozen=True)
class BackendConfig:
    """
    The parts of a ServiceAliasConfig that decide which maps it appears in,
    and what its entries look like.
    """

    name: str
    host: str
    path: str
    is_wildcard: bool
    termination: TLSTermination
    insecure_policy: InsecureEdgeTerminationPolicy
    has_certificate: bool


@dataclasses.dataclass(frozen=True)
class HAProxyMapEntry:
    key: str
    value: str


def _backend_value(cfg: BackendConfig) -> str:
    return f"{generate_backend_name_prefix(cfg.termination)}:{cfg.name}"


def generate_wildcard_domain_map_entry(cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    if cfg.host and cfg.is_wildcard:
        return HAProxyMapEntry(key=generate_route_regexp(cfg.host, "", True), value="1")

    return None


def generate_http_map_entry(cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    if not cfg.host:
        return None

    if cfg.termination == TLSTermination.NONE:
        pass
    elif not (
        cfg.termination.terminates_at_router
        and cfg.insecure_policy == InsecureEdgeTerminationPolicy.ALLOW
    ):
        return None

    return HAProxyMapEntry(
        key=generate_route_regexp(cfg.host, cfg.path, cfg.is_wildcard), value=_backend_value(cfg)
    )


def generate_edge_reencrypt_map_entry(cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    if not cfg.host or not cfg.termination.terminates_at_router:
        return None

    return HAProxyMapEntry(
        key=generate_route_regexp(cfg.host, cfg.path, cfg.is_wildcard), value=_backend_value(cfg)
    )


def generate_http_redirect_map_entry(cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    if cfg.host and cfg.insecure_policy == InsecureEdgeTerminationPolicy.REDIRECT:
        return HAProxyMapEntry(
            key=generate_route_regexp(cfg.host, cfg.path, cfg.is_wildcard), value=cfg.name
        )

    return None


def generate_tcp_map_entry(cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    # TCP routing happens on SNI alone, so paths rule a route out.
    if (
        cfg.host
        and not cfg.path
        and cfg.termination in (TLSTermination.PASSTHROUGH, TLSTermination.REENCRYPT)
    ):
        return HAProxyMapEntry(
            key=generate_route_regexp(cfg.host, "", cfg.is_wildcard), value=cfg.name
        )

    return None


def generate_sni_passthrough_map_entry(cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    if cfg.host and not cfg.path and cfg.termination == TLSTermination.PASSTHROUGH:
        return HAProxyMapEntry(key=generate_route_regexp(cfg.host, "", cfg.is_wildcard), value="1")

    return None


def generate_cert_config_map_entry(cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    if cfg.host and cfg.termination.terminates_at_router and cfg.has_certificate:
        return HAProxyMapEntry(
            key=f"{cfg.name}.pem", value=gen_certificate_host_name(cfg.host, cfg.is_wildcard)
        )

    return None


MapEntryGenerator = Callable[[BackendConfig], Optional[HAProxyMapEntry]]

map_entry_generators: Dict[str, MapEntryGenerator] = {
    "os_wildcard_domain.map": generate_wildcard_domain_map_entry,
    "os_http_be.map": generate_http_map_entry,
    "os_edge_reencrypt_be.map": generate_edge_reencrypt_map_entry,
    "os_route_http_redirect.map": generate_http_redirect_map_entry,
    "os_tcp_be.map": generate_tcp_map_entry,
    "os_sni_passthrough.map": generate_sni_passthrough_map_entry,
    "cert_config.map": generate_cert_config_map_entry,
}


def generate_map_entry(map_name: str, cfg: BackendConfig) -> Optional[HAProxyMapEntry]:
    """
    Generate the entry cfg contributes to the map named map_name, or None if
    it doesn't belong in that map (or there is no such map).
    """

    generator = map_entry_generators.get(map_name)

    if not generator:
        logger.debug("no map entry generator for %s", map_name)
        return None

    return generator(cfg)


def validate_allowlist(value: str) -> Tuple[List[str], bool]:
    """
    Split an allowlist annotation into its valid IP/CIDR entries.

    :return: the valid entries, in order, and whether every entry was valid
    """

    values = value.split()
    cidrs: List[str] = []

    for v in values:
        cidrrange = CIDRRange(v)

        if cidrrange:
            cidrs.append(v)
        else:
            logger.debug("allowlist entry dropped: %s", cidrrange.error)

    return cidrs, len(cidrs) == len(values)


def sort_map_paths(lines: List[str], prefix: str) -> List[str]:
    """
    Sort map lines so that HAProxy's first-match lookup finds the most specific
    entry: reverse lexical order puts longer paths ahead of their own prefixes,
    and every line starting with prefix (wildcard hosts) goes after all of the
    exact-host lines.
    """

    ordered = sorted(lines, reverse=True)

    exact = [line for line in ordered if not line.startswith(prefix)]
    wildcard = [line for line in ordered if line.startswith(prefix)]

    return exact + wildcard

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
import random
from typing import Dict, List, Mapping, Optional

from .model import AliasKey, Endpoint, ServiceAliasConfig, ServiceUnit, TLSTermination

logger = logging.getLogger("routegen.aliases")


def get_http_aliases_grouped_by_host(
    aliases: Mapping[AliasKey, ServiceAliasConfig]
) -> Dict[str, Dict[AliasKey, ServiceAliasConfig]]:
    """
    Group the HTTP(S) aliases by host. Passthrough aliases are left out
    entirely: the router never looks inside their TLS, so it never has to
    choose between them by host.
    """

    result: Dict[str, Dict[AliasKey, ServiceAliasConfig]] = {}

    for key, alias in aliases.items():
        if alias.tls_termination == TLSTermination.PASSTHROUGH:
            continue

        result.setdefault(alias.host, {})[key] = alias

    return result


def get_primary_alias_key(aliases: Mapping[AliasKey, ServiceAliasConfig]) -> AliasKey:
    """
    Return the key of the primary alias for a group of aliases which all
    share the same host.

    A single alias is its own primary. With several, the primary is the
    alphabetically last alias that terminates TLS at the router (edge or
    reencrypt), so that the host still gets a certificate; if none of them
    terminates TLS, it's simply the alphabetically last alias.
    """

    if not aliases:
        return ""

    keys = sorted(aliases.keys(), reverse=True)

    if len(keys) == 1:
        return keys[0]

    for key in keys:
        if aliases[key].tls_termination.terminates_at_router:
            return key

    return keys[0]


def endpoints_for_alias(alias: ServiceAliasConfig, svc: ServiceUnit) -> List[Endpoint]:
    """
    Return the endpoints of svc that alias should route to: all of them,
    unless the alias names a preferred port, in which case only endpoints
    whose port name or port number matches it.
    """

    if not alias.prefer_port:
        return list(svc.endpoint_table)

    return [
        endpoint
        for endpoint in svc.endpoint_table
        if alias.prefer_port in (endpoint.port_name, endpoint.port)
    ]


def process_endpoints_for_alias(
    alias: ServiceAliasConfig,
    svc: ServiceUnit,
    action: str,
    rng: Optional[random.Random] = None,
) -> List[Endpoint]:
    """
    Return endpoints_for_alias(alias, svc), post-processed according to
    action. The only action at present is "shuffle" (any case); anything
    else leaves the endpoints in their discovered order.
    """

    endpoints = endpoints_for_alias(alias, svc)

    if action.lower() == "shuffle":
        (rng or random).shuffle(endpoints)
    elif action:
        logger.debug("process_endpoints_for_alias: ignoring unknown action %r", action)

    return endpoints

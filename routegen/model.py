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

from __future__ import annotations

import dataclasses
import enum
from typing import Dict, List, Mapping

# An AliasKey identifies one ServiceAliasConfig within a render pass. By
# convention it's "namespace:name", but nothing here depends on that.
AliasKey = str


@enum.unique
class TLSTermination(enum.Enum):
    NONE = ""
    EDGE = "edge"
    PASSTHROUGH = "passthrough"
    REENCRYPT = "reencrypt"

    @property
    def terminates_at_router(self) -> bool:
        """
        True if the router itself holds the certificate for this termination.
        """
        return self in (TLSTermination.EDGE, TLSTermination.REENCRYPT)


@enum.unique
class InsecureEdgeTerminationPolicy(enum.Enum):
    UNSET = ""
    NONE = "None"
    ALLOW = "Allow"
    REDIRECT = "Redirect"


@dataclasses.dataclass(frozen=True)
class Certificate:
    """
    A certificate (or CA bundle) attached to an alias. Two Certificates with
    the same contents are the same certificate as far as sharing goes, no
    matter which alias they came from.
    """

    id: str
    contents: str = ""


@dataclasses.dataclass(frozen=True)
class Endpoint:
    id: str
    ip: str
    port: str
    target_name: str = ""
    port_name: str = ""


@dataclasses.dataclass(frozen=True)
class ServiceUnit:
    """
    A backend service and its endpoints, in the order they were discovered.
    """

    name: str
    endpoint_table: List[Endpoint] = dataclasses.field(default_factory=list)


@dataclasses.dataclass(frozen=True)
class ServiceAliasConfig:
    """
    One host/path/TLS binding: what a Route looks like by the time it reaches
    the map generators.
    """

    name: str = ""
    namespace: str = ""
    host: str = ""
    path: str = ""
    is_wildcard: bool = False
    tls_termination: TLSTermination = TLSTermination.NONE
    insecure_edge_termination_policy: InsecureEdgeTerminationPolicy = (
        InsecureEdgeTerminationPolicy.UNSET
    )
    prefer_port: str = ""

    # cert key => Certificate
    certificates: Dict[str, Certificate] = dataclasses.field(default_factory=dict)
    annotations: Dict[str, str] = dataclasses.field(default_factory=dict)

    # service name => weight
    service_unit_names: Dict[str, int] = dataclasses.field(default_factory=dict)


@dataclasses.dataclass(frozen=True)
class TemplateData:
    """
    The snapshot of the routing table that one render pass works from.

    certificate_index maps certificate contents to the number of aliases
    that reference those contents. It must be exact: the certificate map
    only advertises HTTP/2 for certificates with a count of one.
    """

    state: Dict[AliasKey, ServiceAliasConfig] = dataclasses.field(default_factory=dict)
    service_units: Dict[str, ServiceUnit] = dataclasses.field(default_factory=dict)
    working_dir: str = ""
    disable_http2: bool = False
    certificate_index: Dict[str, int] = dataclasses.field(default_factory=dict)


def generate_cert_key(alias: ServiceAliasConfig) -> str:
    """
    Return the key under which an alias stores its own serving certificate.
    """
    return alias.host


def build_certificate_index(state: Mapping[AliasKey, ServiceAliasConfig]) -> Dict[str, int]:
    """
    Count, for each distinct certificate, how many aliases reference it.

    An alias that carries the same contents under two keys still counts once.
    Empty contents are not certificates and are never counted.
    """

    index: Dict[str, int] = {}

    for alias in state.values():
        seen = {cert.contents for cert in alias.certificates.values() if cert.contents}

        for contents in seen:
            index[contents] = index.get(contents, 0) + 1

    return index

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
# Loading a routing table snapshot from YAML or JSON. This is what the CLI
# renders from; the router proper builds TemplateData directly.
#
# A snapshot looks like:
#
# workingDir: /var/lib/haproxy/router
# disableHTTP2: false
# routes:
#   default:example:
#     host: www.example.com
#     path: /
#     wildcard: false
#     termination: edge
#     insecureEdgeTerminationPolicy: Redirect
#     preferPort: http
#     certificates:
#       www.example.com: "-----BEGIN CERTIFICATE-----..."
#     annotations:
#       haproxy.router.openshift.io/timeout: 30s
#     serviceUnits:
#       default/example: 100
# serviceUnits:
#   default/example:
#     endpoints:
#       - { id: ep1, ip: 10.0.0.1, port: "8080", portName: http }
########

import logging
from typing import Any, Dict, Optional

import yaml

from .config import Config
from .model import (
    Certificate,
    Endpoint,
    InsecureEdgeTerminationPolicy,
    ServiceAliasConfig,
    ServiceUnit,
    TemplateData,
    TLSTermination,
    build_certificate_index,
)
from .utils import dump_json, parse_bool, parse_json, parse_yaml

logger = logging.getLogger("routegen.state")


class StateError(Exception):
    """
    A routing table snapshot couldn't be loaded.
    """


def _mapping(obj: Any, what: str) -> Dict[str, Any]:
    if obj is None:
        return {}

    if not isinstance(obj, dict):
        raise StateError(f"{what} must be a mapping, not {type(obj).__name__}")

    return obj


def _certificate(cert_key: str, spec: Any) -> Certificate:
    if isinstance(spec, str):
        return Certificate(id=cert_key, contents=spec)

    spec = _mapping(spec, f"certificate {cert_key}")
    return Certificate(id=str(spec.get("id", cert_key)), contents=str(spec.get("contents", "")))


def _alias(key: str, spec: Any) -> ServiceAliasConfig:
    spec = _mapping(spec, f"route {key}")

    try:
        termination = TLSTermination(spec.get("termination") or "")
    except ValueError:
        raise StateError(f"route {key}: unknown termination {spec.get('termination')!r}")

    try:
        policy = InsecureEdgeTerminationPolicy(spec.get("insecureEdgeTerminationPolicy") or "")
    except ValueError:
        raise StateError(
            f"route {key}: unknown insecureEdgeTerminationPolicy "
            f"{spec.get('insecureEdgeTerminationPolicy')!r}"
        )

    namespace, _, name = key.rpartition(":")

    certificates = {
        str(cert_key): _certificate(str(cert_key), cert_spec)
        for cert_key, cert_spec in _mapping(spec.get("certificates"), f"route {key} certificates").items()
    }

    annotations = {
        str(k): str(v)
        for k, v in _mapping(spec.get("annotations"), f"route {key} annotations").items()
    }

    try:
        service_unit_names = {
            str(k): int(v)
            for k, v in _mapping(spec.get("serviceUnits"), f"route {key} serviceUnits").items()
        }
    except (TypeError, ValueError) as e:
        raise StateError(f"route {key}: service unit weights must be integers: {e}")

    return ServiceAliasConfig(
        name=str(spec.get("name", name)),
        namespace=str(spec.get("namespace", namespace)),
        host=str(spec.get("host") or ""),
        path=str(spec.get("path") or ""),
        is_wildcard=parse_bool(spec.get("wildcard", False)),
        tls_termination=termination,
        insecure_edge_termination_policy=policy,
        prefer_port=str(spec.get("preferPort") or ""),
        certificates=certificates,
        annotations=annotations,
        service_unit_names=service_unit_names,
    )


def _service_unit(name: str, spec: Any) -> ServiceUnit:
    spec = _mapping(spec, f"service unit {name}")
    endpoints = []

    for i, ep in enumerate(spec.get("endpoints") or []):
        ep = _mapping(ep, f"service unit {name} endpoint {i}")

        if "ip" not in ep:
            raise StateError(f"service unit {name} endpoint {i} has no ip")

        endpoints.append(
            Endpoint(
                id=str(ep.get("id", f"ept:{name}:{i}")),
                ip=str(ep["ip"]),
                port=str(ep.get("port", "")),
                target_name=str(ep.get("targetName", "")),
                port_name=str(ep.get("portName", "")),
            )
        )

    return ServiceUnit(name=name, endpoint_table=endpoints)


def template_data_from_dict(
    snapshot: Dict[str, Any],
    working_dir: Optional[str] = None,
    disable_http2: Optional[bool] = None,
) -> TemplateData:
    """
    Build the TemplateData for a snapshot. working_dir and disable_http2
    override the snapshot, which in turn overrides Config.
    """

    snapshot = _mapping(snapshot, "snapshot")

    state = {
        str(key): _alias(str(key), spec)
        for key, spec in _mapping(snapshot.get("routes"), "routes").items()
    }

    service_units = {
        str(name): _service_unit(str(name), spec)
        for name, spec in _mapping(snapshot.get("serviceUnits"), "serviceUnits").items()
    }

    if working_dir is None:
        working_dir = str(snapshot.get("workingDir") or Config.working_dir)

    if disable_http2 is None:
        disable_http2 = parse_bool(snapshot.get("disableHTTP2", Config.disable_http2))

    td = TemplateData(
        state=state,
        service_units=service_units,
        working_dir=working_dir,
        disable_http2=disable_http2,
        certificate_index=build_certificate_index(state),
    )

    if Config.log_resources:
        logger.info("loaded routes: %s", dump_json(sorted(state.keys()), pretty=True))

    logger.debug(
        "loaded %d routes and %d service units into %s", len(state), len(service_units), working_dir
    )

    return td


def load_template_data(
    text: str, working_dir: Optional[str] = None, disable_http2: Optional[bool] = None
) -> TemplateData:
    """
    Parse a snapshot (JSON if it looks like JSON, YAML otherwise) into
    TemplateData.

    :raises StateError: if the snapshot can't be parsed or isn't well-formed
    """

    try:
        if text.lstrip().startswith("{"):
            snapshot = parse_json(text)
        else:
            docs = parse_yaml(text)

            if len(docs) != 1:
                raise StateError(f"snapshot must be exactly one YAML document, not {len(docs)}")

            snapshot = docs[0]
    except (ValueError, yaml.YAMLError) as e:
        raise StateError(f"could not parse snapshot: {e}")

    return template_data_from_dict(snapshot, working_dir=working_dir, disable_http2=disable_http2)

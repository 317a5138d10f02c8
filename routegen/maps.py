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
import os
from typing import List, Optional

from .config import Config
from .haproxy import BackendConfig, generate_map_entry, sort_map_paths, validate_allowlist
from .model import AliasKey, Certificate, ServiceAliasConfig, TemplateData, generate_cert_key

logger = logging.getLogger("routegen.maps")

ALPN_HINT = "[alpn h2,http/1.1]"

# Lines starting with this are wildcard host regexes.
WILDCARD_PREFIX = "^[^\\.]*\\."


def backend_config(name: str, alias: ServiceAliasConfig, has_certificate: bool) -> BackendConfig:
    return BackendConfig(
        name=name,
        host=alias.host,
        path=alias.path,
        is_wildcard=alias.is_wildcard,
        termination=alias.tls_termination,
        insecure_policy=alias.insecure_edge_termination_policy,
        has_certificate=has_certificate,
    )


def generate_cert_config_map(td: TemplateData) -> List[str]:
    """
    Generate the lines of the certificate config map: one per alias with a
    certificate of its own, mapping the certificate's path on disk to the
    host name it serves.

    Each line advertises HTTP/2 via ALPN unless HTTP/2 is disabled, or the
    certificate is shared with other aliases. A shared certificate puts
    every alias using it behind one TLS connection, and we can't promise
    that all of their backends can speak HTTP/2.

    Lines come out in reverse lexical order.
    """

    lines: List[str] = []

    for key, alias in td.state.items():
        cert: Optional[Certificate] = None

        if alias.host:
            cert = alias.certificates.get(generate_cert_key(alias))

        has_cert = bool(cert and cert.contents)
        entry = generate_map_entry(Config.cert_config_map, backend_config(key, alias, has_cert))

        if not entry:
            continue

        cert_path = os.path.join(td.working_dir, Config.cert_dir, entry.key)
        contents = cert.contents if cert else ""

        if td.disable_http2 or td.certificate_index.get(contents, 0) > 1:
            lines.append(" ".join([cert_path, entry.value]))
        else:
            lines.append(" ".join([cert_path, ALPN_HINT, entry.value]))

    lines.sort(reverse=True)
    return lines


def generate_haproxy_map(name: str, td: TemplateData) -> List[str]:
    """
    Generate the lines of the map named name, sorted so that HAProxy's
    first-match lookup hits the most specific entry first.
    """

    if name == Config.cert_config_map:
        return generate_cert_config_map(td)

    lines: List[str] = []

    for key, alias in td.state.items():
        entry = generate_map_entry(name, backend_config(key, alias, False))

        if entry:
            lines.append(f"{entry.key} {entry.value}")

    return sort_map_paths(lines, WILDCARD_PREFIX)


def validate_haproxy_allowlist(value: str) -> bool:
    """
    Report whether every entry in an allowlist annotation is a valid IP or
    CIDR.
    """
    _, valid = validate_allowlist(value)
    return valid


def generate_haproxy_allowlist_file(working_dir: str, key: AliasKey, value: str) -> str:
    """
    Write the valid entries of an allowlist annotation, one per line, to
    <working_dir>/<allowlist dir>/<key>.txt for use in an HAProxy ACL.

    :return: the path written, or "" if the write failed
    """

    name = os.path.join(working_dir, Config.allowlist_dir, f"{key}.txt")
    cidrs, _ = validate_allowlist(value)
    data = "\n".join(cidrs) + "\n"

    try:
        with open(name, "w", encoding="utf-8") as f:
            f.write(data)

        os.chmod(name, 0o644)
    except OSError as e:
        logger.error("error writing haproxy allowlist contents to %s: %s", name, e)
        return ""

    return name

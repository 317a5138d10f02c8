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

import os
from typing import ClassVar, List

from .utils import parse_bool


class Config:
    """
    Process-wide router settings, read once from the environment.

    Everything here is a class variable so that the map generators can use
    it without threading a config object through every template helper.
    Tests that need different values patch the class attributes.
    """

    working_dir: ClassVar[str] = os.environ.get("ROUTER_WORKING_DIR", "/var/lib/haproxy/router")
    disable_http2: ClassVar[bool] = parse_bool(os.environ.get("ROUTER_DISABLE_HTTP2"))
    log_resources: ClassVar[bool] = parse_bool(os.environ.get("ROUTER_LOG_RESOURCES"))

    # These are relative to the working directory.
    cert_dir: ClassVar[str] = os.environ.get("ROUTER_CERT_DIR", "certs")
    allowlist_dir: ClassVar[str] = os.environ.get("ROUTER_ALLOWLIST_DIR", "allowlists")
    map_dir: ClassVar[str] = os.environ.get("ROUTER_MAP_DIR", "conf")

    # The certificate map is special: its lines are paths to certificate files,
    # not regex keys.
    cert_config_map: ClassVar[str] = "cert_config.map"

    # The maps `routegen maps` writes, in the order it writes them.
    standard_maps: ClassVar[List[str]] = [
        "os_wildcard_domain.map",
        "os_http_be.map",
        "os_edge_reencrypt_be.map",
        "os_route_http_redirect.map",
        "os_tcp_be.map",
        "os_sni_passthrough.map",
        "cert_config.map",
    ]

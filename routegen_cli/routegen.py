# Copyright 2018-2020 Datawire. All rights reserved.
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
# This is the routegen CLI. It renders the HAProxy map and allowlist files for
# a routing table snapshot, which is mostly useful for looking at what the
# router would generate without running a router.
########

import logging
import os
import sys
import traceback
from typing import Dict, List, Optional

import clize
from clize import Parameter
from prometheus_client import CollectorRegistry, write_to_textfile

from routegen import Config, TemplateData, Version, helper_functions, load_template_data
from routegen.utils import Timer, dump_json

__version__ = Version

logging.basicConfig(
    level=logging.INFO,
    format="%%(asctime)s routegen %s %%(levelname)s: %%(message)s" % __version__,
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger("routegen")

TIMEOUT_ANNOTATIONS = [
    "haproxy.router.openshift.io/timeout",
    "haproxy.router.openshift.io/timeout-tunnel",
]

ALLOWLIST_ANNOTATIONS = [
    "haproxy.router.openshift.io/ip_allowlist",
    "haproxy.router.openshift.io/ip_whitelist",
]


def handle_exception(what, e, **kwargs):
    tb = "\n".join(traceback.format_exception(*sys.exc_info()))

    extra = " ".join("%s=%s" % (k, v) for k, v in sorted(kwargs.items()))

    logger.error("%s: %s %s\n%s" % (what, e, extra, tb))


def version():
    """
    Show routegen's version
    """

    print("routegen %s" % __version__)


def load(state_path: str, working_dir: Optional[str] = None, disable_http2: bool = False) -> TemplateData:
    with open(state_path, "r", encoding="utf-8") as f:
        text = f.read()

    # clize makes a False-by-default kwarg a flag, so "not given" and
    # "false" look the same here; only an explicit flag overrides.
    return load_template_data(
        text, working_dir=working_dir, disable_http2=True if disable_http2 else None
    )


def allowlist_value(annotations: Dict[str, str]) -> Optional[str]:
    for name in ALLOWLIST_ANNOTATIONS:
        if name in annotations:
            return annotations[name]

    return None


def write_maps(td: TemplateData, output_dir: str) -> List[str]:
    os.makedirs(output_dir, exist_ok=True)
    written = []

    generate = helper_functions.lookup("generateHAProxyMap")

    for name in Config.standard_maps:
        path = os.path.join(output_dir, name)
        lines = generate(name, td)

        with open(path, "w", encoding="utf-8") as output:
            for line in lines:
                output.write(line)
                output.write("\n")

        logger.debug("wrote %d lines to %s", len(lines), path)
        written.append(path)

    return written


def write_allowlists(td: TemplateData) -> List[str]:
    os.makedirs(os.path.join(td.working_dir, Config.allowlist_dir), exist_ok=True)
    written = []

    generate = helper_functions.lookup("generateHAProxyAllowlistFile")

    for key in sorted(td.state.keys()):
        value = allowlist_value(td.state[key].annotations)

        if value is None:
            continue

        path = generate(td.working_dir, key, value)

        if path:
            written.append(path)

    return written


def maps(
    state_path: Parameter.REQUIRED,
    *,
    output_dir=None,
    working_dir=None,
    disable_http2=False,
    metrics_file=None,
    debug=False,
    stats=False,
):
    """
    Render the HAProxy map files and allowlist files for a routing table snapshot

    :param state_path: YAML or JSON routing table snapshot
    :param output_dir: Directory for the map files (default: <working_dir>/conf)
    :param working_dir: Router working directory (default: from the snapshot, then $ROUTER_WORKING_DIR)
    :param disable_http2: If set, never advertise HTTP/2 in the certificate map
    :param metrics_file: If set, write Prometheus timing metrics to this file
    :param debug: If set, generate debugging output
    :param stats: If set, dump statistics to stderr
    """

    if debug:
        logger.setLevel(logging.DEBUG)

    registry = CollectorRegistry() if metrics_file else None
    _rc = 0

    try:
        load_timer = Timer("load snapshot", registry)
        with load_timer:
            td = load(state_path, working_dir=working_dir, disable_http2=disable_http2)

        if not output_dir:
            output_dir = os.path.join(td.working_dir, Config.map_dir)

        maps_timer = Timer("map generation", registry)
        with maps_timer:
            map_files = write_maps(td, output_dir)

        allowlist_timer = Timer("allowlist generation", registry)
        with allowlist_timer:
            allowlist_files = write_allowlists(td)

        logger.info(
            "wrote %d map files to %s and %d allowlist files",
            len(map_files),
            output_dir,
            len(allowlist_files),
        )

        if stats:
            sys.stderr.write("STATS:\n")
            sys.stderr.write("  routes:        %d\n" % len(td.state))
            sys.stderr.write("  certificates:  %d\n" % len(td.certificate_index))
            sys.stderr.write("  allowlists:    %d\n" % len(allowlist_files))
            sys.stderr.write("TIMERS:\n")

            for timer in (load_timer, maps_timer, allowlist_timer):
                sys.stderr.write("  %s\n" % timer.summary())

        if registry:
            write_to_textfile(metrics_file, registry)
    except Exception as e:
        handle_exception("EXCEPTION from maps", e, state_path=state_path)
        _rc = 1

    sys.exit(_rc)


def check(state_path: Parameter.REQUIRED, *, debug=False, nopretty=False):
    """
    Check the annotations in a routing table snapshot, and report the values
    the router would actually use for the ones it would change or drop

    :param state_path: YAML or JSON routing table snapshot
    :param debug: If set, generate debugging output
    :param nopretty: If set, do not pretty print the JSON report
    """

    if debug:
        logger.setLevel(logging.DEBUG)

    clip = helper_functions.lookup("clipHAProxyTimeoutValue")
    parse_ips = helper_functions.lookup("parseIPList")

    try:
        td = load(state_path)
    except Exception as e:
        handle_exception("EXCEPTION from check", e, state_path=state_path)
        sys.exit(1)

    report: Dict[str, Dict[str, Dict[str, str]]] = {}

    for key in sorted(td.state.keys()):
        annotations = td.state[key].annotations
        changed: Dict[str, Dict[str, str]] = {}

        for name in TIMEOUT_ANNOTATIONS:
            if name in annotations:
                value = annotations[name]
                effective = clip(value)

                if effective != value:
                    changed[name] = {"given": value, "effective": effective}

        for name in ALLOWLIST_ANNOTATIONS:
            if name in annotations:
                value = annotations[name]
                effective = parse_ips(value)

                if effective != value:
                    changed[name] = {"given": value, "effective": effective}

        if changed:
            report[key] = changed

    sys.stdout.write(dump_json(report, pretty=not nopretty))
    sys.stdout.write("\n")

    if report:
        logger.warning("%d routes have annotations the router will change", len(report))


def main():
    clize.run(
        [maps, check],
        alt=[version],
        description="""
        Render HAProxy router map files from a routing table snapshot. Use

        routegen command --help

        for more help.
        """,
    )


if __name__ == "__main__":
    main()

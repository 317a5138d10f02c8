from .cidrrange import CIDRRange
from .haproxytime import (
    HAPROXY_DEFAULT_TIMEOUT,
    HAPROXY_DEFAULT_TIMEOUT_DURATION,
    HAPROXY_MAX_TIMEOUT,
    HAPROXY_MAX_TIMEOUT_DURATION,
    DurationOverflowError,
    DurationSyntaxError,
    parse_duration,
)
from .mapentry import (
    BackendConfig,
    HAProxyMapEntry,
    generate_map_entry,
    sort_map_paths,
    validate_allowlist,
)

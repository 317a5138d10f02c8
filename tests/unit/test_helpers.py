import sys

import pytest

from routegen.helpers import HelperRegistry, default_helpers, helper_functions
from routegen.model import ServiceAliasConfig, TemplateData, TLSTermination


def test_registry_names():
    assert sorted(helper_functions) == sorted(
        [
            "endpointsForAlias",
            "processEndpointsForAlias",
            "env",
            "matchPattern",
            "isInteger",
            "matchValues",
            "genSubdomainWildcardRegexp",
            "generateRouteRegexp",
            "genCertificateHostName",
            "genBackendNamePrefix",
            "isTrue",
            "firstMatch",
            "getHTTPAliasesGroupedByHost",
            "getPrimaryAliasKey",
            "generateHAProxyMap",
            "validateHAProxyAllowlist",
            "generateHAProxyAllowlistFile",
            "clipHAProxyTimeoutValue",
            "parseIPList",
            "indent",
            "processRewriteTarget",
        ]
    )

    assert len(helper_functions) == 21
    assert "matchPattern" in helper_functions
    assert "nonexistent" not in helper_functions


def test_registry_arity():
    for name, min_args, max_args in [
        ("isTrue", 1, 1),
        ("indent", 2, 2),
        ("genSubdomainWildcardRegexp", 3, 3),
        ("firstMatch", 1, None),
        ("matchValues", 1, None),
        ("env", 1, None),
        ("processEndpointsForAlias", 3, 4),
        ("generateHAProxyAllowlistFile", 3, 3),
    ]:
        helper = helper_functions.lookup(name)

        assert helper.min_args == min_args, f"{name} min_args"
        assert helper.max_args == max_args, f"{name} max_args"


def test_registry_call():
    assert helper_functions.call("isTrue", "true")
    assert helper_functions.call("firstMatch", "a|b", "c", "b", "a") == "b"
    assert helper_functions.call("indent", "a\n\nb", 2) == "  a\n\n  b"
    assert helper_functions.call("clipHAProxyTimeoutValue", "5s") == "5s"

    state = {
        "ns:a": ServiceAliasConfig(host="www.example.com", tls_termination=TLSTermination.EDGE),
        "ns:b": ServiceAliasConfig(host="www.example.com"),
    }

    grouped = helper_functions.call("getHTTPAliasesGroupedByHost", state)
    assert helper_functions.call("getPrimaryAliasKey", grouped["www.example.com"]) == "ns:a"

    td = TemplateData(state=state, working_dir="/wd")
    assert helper_functions.call("generateHAProxyMap", "os_http_be.map", td) == [
        r"^www\.example\.com(:[0-9]+)?(/.*)?$ be_http:ns:b"
    ]

    with pytest.raises(TypeError):
        helper_functions.call("isTrue")

    with pytest.raises(TypeError):
        helper_functions.call("indent", "a", 2, 3)

    with pytest.raises(KeyError):
        helper_functions.call("nonexistent", "a")


def test_registry_registration_errors():
    registry = HelperRegistry()
    registry.register("one", lambda s: s)

    with pytest.raises(RuntimeError):
        registry.register("one", lambda s: s)

    def needs_keyword(s, *, flag):
        return s

    with pytest.raises(RuntimeError):
        registry.register("needsKeyword", needs_keyword)

    def optional_keyword(s, *, flag=False):
        return s

    helper = registry.register("optionalKeyword", optional_keyword, "takes one argument")
    assert (helper.min_args, helper.max_args) == (1, 1)
    assert helper.description == "takes one argument"


def test_default_helpers_are_independent():
    registry = default_helpers()

    assert sorted(registry) == sorted(helper_functions)
    assert registry is not helper_functions

    as_dict = registry.as_dict()
    assert as_dict["isTrue"]("1")


if __name__ == "__main__":
    pytest.main(sys.argv)

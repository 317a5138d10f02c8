import re
import sys

import pytest

from routegen.model import TLSTermination
from routegen.regexps import (
    gen_certificate_host_name,
    gen_subdomain_wildcard_regexp,
    generate_backend_name_prefix,
    generate_route_regexp,
    get_domain_for_host,
    quote_meta,
)


def test_quote_meta():
    assert quote_meta("www.example.com") == r"www\.example\.com"
    assert quote_meta("my-app.example.com") == r"my-app\.example\.com"
    assert quote_meta("/a+b?c*(d)|[e]{f}^$\\") == r"/a\+b\?c\*\(d\)\|\[e\]\{f\}\^\$\\"


def test_get_domain_for_host():
    assert get_domain_for_host("www.example.com") == "example.com"
    assert get_domain_for_host("a.b.example.com") == "b.example.com"
    assert get_domain_for_host("localhost") == ""
    assert get_domain_for_host("") == ""


def test_subdomain_wildcard_regexp():
    prefix = gen_subdomain_wildcard_regexp("www.example.com", "/path", False)
    assert prefix == r"^[^\.]*\.example\.com/path(|/.*)$"

    exact = gen_subdomain_wildcard_regexp("www.example.com", "/path", True)
    assert exact == r"^[^\.]*\.example\.com/path$"

    for s, wanted in [
        ("www.example.com/path", True),
        ("foo.example.com/path", True),
        ("foo.example.com/path/sub", True),
        ("foo.example.com/pathology", False),
        ("foo.other.com/path", False),
        ("a.b.example.com/path", False),
        ("fooexample.com/path", False),
    ]:
        assert bool(re.match(prefix, s)) == wanted, f"{prefix} vs {s}"

    assert re.match(exact, "foo.example.com/path")
    assert not re.match(exact, "foo.example.com/path/sub")


def test_subdomain_wildcard_regexp_no_subdomain():
    assert gen_subdomain_wildcard_regexp("localhost", "/p", True) == "localhost/p"
    assert gen_subdomain_wildcard_regexp("localhost", "", False) == "localhost"


def test_generate_route_regexp():
    for hostname, path, wildcard, wanted in [
        ("www.example.com", "", False, r"^www\.example\.com(:[0-9]+)?(/.*)?$"),
        ("www.example.com", "/", False, r"^www\.example\.com(:[0-9]+)?(/.*)?$"),
        ("www.example.com", "///", False, r"^www\.example\.com(:[0-9]+)?(/.*)?$"),
        ("www.example.com", "/api", False, r"^www\.example\.com(:[0-9]+)?/api(/.*)?$"),
        ("www.example.com", "/api/", False, r"^www\.example\.com(:[0-9]+)?/api/(.*)?$"),
        ("www.example.com", "/api", True, r"^[^\.]*\.example\.com(:[0-9]+)?/api(/.*)?$"),
        ("my-app.example.com", "", False, r"^my-app\.example\.com(:[0-9]+)?(/.*)?$"),
        ("localhost", "", True, r"^localhost(:[0-9]+)?(/.*)?$"),
    ]:
        assert generate_route_regexp(hostname, path, wildcard) == wanted

    route_re = generate_route_regexp("www.example.com", "/api", False)

    assert re.match(route_re, "www.example.com/api")
    assert re.match(route_re, "www.example.com:8443/api/v1")
    assert not re.match(route_re, "www.example.com/apiv1")
    assert not re.match(route_re, "wwwxexample.com/api")


def test_gen_certificate_host_name():
    assert gen_certificate_host_name("www.example.com", True) == "*.example.com"
    assert gen_certificate_host_name("www.example.com", False) == "www.example.com"
    assert gen_certificate_host_name("localhost", True) == "localhost"
    assert gen_certificate_host_name(".example.com", True) == ".example.com"


def test_generate_backend_name_prefix():
    assert generate_backend_name_prefix(TLSTermination.NONE) == "be_http"
    assert generate_backend_name_prefix(TLSTermination.EDGE) == "be_edge_http"
    assert generate_backend_name_prefix(TLSTermination.REENCRYPT) == "be_secure"
    assert generate_backend_name_prefix(TLSTermination.PASSTHROUGH) == "be_tcp"

    # Templates hand us plain strings.
    assert generate_backend_name_prefix("edge") == "be_edge_http"
    assert generate_backend_name_prefix("") == "be_http"
    assert generate_backend_name_prefix("bogus") == "be_http"


if __name__ == "__main__":
    pytest.main(sys.argv)

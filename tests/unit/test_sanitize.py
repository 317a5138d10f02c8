import sys
from unittest.mock import patch

import pytest

from routegen.sanitize import (
    clip_haproxy_timeout_value,
    env,
    indent,
    is_integer,
    is_true,
    parse_ip_list,
    process_rewrite_target,
)


def test_is_true():
    for s in ["1", "t", "T", "TRUE", "true", "True"]:
        assert is_true(s), f"{s!r} should be true"

    for s in ["0", "f", "false", "False", "", "yes", "on", "tRuE", " true", "bogus"]:
        assert not is_true(s), f"{s!r} should be false"


def test_is_integer():
    for s in ["0", "42", "-7", "+7", "007", "9223372036854775807", "-9223372036854775808"]:
        assert is_integer(s), f"{s!r} should be an integer"

    for s in [
        "", "4.2", "1e3", "abc", " 42", "42 ", "-", "0x1f", "42\n",
        "9223372036854775808", "-9223372036854775809", "99999999999999999999",
    ]:
        assert not is_integer(s), f"{s!r} should not be an integer"


def test_env(monkeypatch):
    monkeypatch.setenv("ROUTEGEN_TEST_SET", "value")
    monkeypatch.setenv("ROUTEGEN_TEST_EMPTY", "")
    monkeypatch.delenv("ROUTEGEN_TEST_UNSET", raising=False)

    assert env("ROUTEGEN_TEST_SET", "default") == "value"
    assert env("ROUTEGEN_TEST_EMPTY", "", "second") == "second"
    assert env("ROUTEGEN_TEST_UNSET", "first", "second") == "first"
    assert env("ROUTEGEN_TEST_UNSET") == ""
    assert env("ROUTEGEN_TEST_UNSET", "", "") == ""


def test_clip_timeout():
    for val, wanted in [
        ("", ""),
        ("5s", "5s"),
        ("500", "500"),
        ("0", "0"),
        ("10us", "10us"),
        ("30m", "30m"),
        ("24d", "24d"),
        ("2147483647ms", "2147483647ms"),
        ("2147483648ms", "2147483647ms"),
        ("2147483648", "2147483647ms"),
        ("25d", "2147483647ms"),
        ("1000000h", "2147483647ms"),
        ("99999999999999999999999s", "2147483647ms"),
        ("abc", ""),
        ("5.5s", ""),
        ("-1s", ""),
        ("5 s", ""),
        ("5S", ""),
        ("1h30m", ""),
        ("5s\n", ""),
        ("500\n", ""),
    ]:
        assert clip_haproxy_timeout_value(val) == wanted, f"clip({val!r})"


def test_clip_timeout_other_errors():
    with patch("routegen.sanitize.parse_duration", side_effect=ValueError("weird")):
        assert clip_haproxy_timeout_value("5s") == "5s"

    with patch("routegen.sanitize.parse_duration", side_effect=ValueError("weird")):
        assert clip_haproxy_timeout_value("10s") == "5s"


def test_parse_ip_list():
    for val, wanted in [
        ("", ""),
        ("   ", ""),
        (" 10.0.0.1 ", ""),
        (" 10.0.0.1", ""),
        ("10.0.0.1\n", ""),
        ("10.0.0.1", "10.0.0.1"),
        ("10.0.0.1 10.0.0.0/8 bogus", "10.0.0.1 10.0.0.0/8"),
        ("bogus 10.0.0.0/8 10.0.0.1", "10.0.0.0/8 10.0.0.1"),
        ("10.0.0.1   192.168.1.0/24\t::1", "10.0.0.1 192.168.1.0/24 ::1"),
        ("2001:db8::/32 fe80::1", "2001:db8::/32 fe80::1"),
        ("10.0.0.0/33 300.0.0.1 10.0.0.0/", ""),
        ("bogus", ""),
    ]:
        assert parse_ip_list(val) == wanted, f"parse_ip_list({val!r})"


def test_indent():
    assert indent("a\n\nb", 2) == "  a\n\n  b"
    assert indent("a", 0) == "a"
    assert indent("a\nb", -3) == "a\nb"
    assert indent("", 4) == ""
    assert indent("a\n", 1) == " a\n"
    assert indent("line one\n  line two", 4) == "    line one\n      line two"


def test_process_rewrite_target():
    for val, wanted in [
        ("/", "/"),
        ("/foo", "/foo"),
        ("/foo%bar", "/foo%%bar"),
        ("/foo#comment", "/foo"),
        ("/foo\\", "/foo"),
        ("/it's", "/it'\\''s"),
        ("/\\1", "/\\1"),
        ("/a\\#b", "/a\\#b"),
        ("/a\\\\#b", "/a\\\\"),
        ("/a\\' http-request deny '", "/a\\'\\'' http-request deny '\\''"),
        ("/a\\\\'b", "/a\\\\'\\''b"),
        ("/a\\%b", "/a\\%%b"),
        ("", ""),
    ]:
        assert process_rewrite_target(val) == wanted, f"process_rewrite_target({val!r})"


def test_process_rewrite_target_never_closes_quote():
    for val in ["'", "\\'", "\\\\'", "/x\\'y'z", "\\'\\'", "a\\\\\\'b"]:
        sanitized = process_rewrite_target(val)

        # Every quote must be part of a close-escape-reopen sequence.
        assert "'" not in sanitized.replace("'\\''", ""), f"{val!r} gave {sanitized!r}"


if __name__ == "__main__":
    pytest.main(sys.argv)

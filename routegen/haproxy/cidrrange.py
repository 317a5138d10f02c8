import re
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Optional, Union

_prefix_len_re = re.compile(r"[0-9]{1,3}")


class CIDRRange:
    """
    A CIDRRange is an IP address (either v4 or v6) plus a prefix length, as
    HAProxy accepts it in an ACL source list.
    """

    def __init__(self, spec: str) -> None:
        """
        Initialize a CIDRRange from a spec, which can look like any of:

        127.0.0.1 -- an exact IPv4 match
        ::1 -- an exact IPv6 match
        192.168.0.0/16 -- an IPv4 range
        2001:2000::/64 -- an IPv6 range

        Host bits are allowed in a range (10.1.2.3/8 is fine). Zoned IPv6
        addresses (fe80::1%eth0) are not.

        If the spec isn't valid, the CIDRRange object will evaluate False,
        with information about the error in self.error.

        :param spec: string specifying the IP or CIDR block in question
        """

        self.spec = spec
        self.error: Optional[str] = None
        self.address: Optional[str] = None
        self.prefix_len: Optional[int] = None
        self.is_range = False

        pfx_len: Optional[int] = None
        addr: Optional[Union[IPv4Address, IPv6Address]] = None

        if "/" in spec:
            address, lenstr = spec.split("/", 1)

            if not _prefix_len_re.fullmatch(lenstr):
                self.error = f"CIDR range {spec} has an invalid length, ignoring"
                return

            pfx_len = int(lenstr)
            self.is_range = True
        else:
            address = spec

        if "%" not in address:
            try:
                addr = ip_address(address)
            except ValueError:
                pass

        if addr is None:
            self.error = f"Invalid IP address {address}"
            return

        if pfx_len is None:
            pfx_len = addr.max_prefixlen
        elif pfx_len > addr.max_prefixlen:
            self.error = f"Invalid prefix length for IPv{addr.version} address {address}/{pfx_len}"
            return

        self.address = str(addr)
        self.prefix_len = pfx_len

    def __bool__(self) -> bool:
        """
        A CIDRRange will evaluate as True IFF there is no error, the address
        is not None, and the prefix_len is not None.
        """

        return (not self.error) and (self.address is not None) and (self.prefix_len is not None)

    def __str__(self) -> str:
        if self:
            return f"{self.address}/{self.prefix_len}"
        else:
            raise RuntimeError("cannot serialize an invalid CIDRRange!")

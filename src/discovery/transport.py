"""Turn an address string from an instance record into transport addresses."""

import ipaddress
import logging
import socket

from discovery.errors import AddressResolutionError
from discovery.models.address import TransportAddress

logger = logging.getLogger(__name__)

# Ports taken from a range per address; the rest of a wider range is ignored
MAX_PORTS_PER_ADDRESS = 5


def _parse_ports(value: str, address: str) -> list[int]:
    if "-" in value:
        low, _, high = value.partition("-")
        if "-" in high:
            raise AddressResolutionError(f"Invalid port range in [{address}]")
        first, last = _parse_ports(low, address)[0], _parse_ports(high, address)[0]
        if first > last:
            raise AddressResolutionError(f"Invalid port range in [{address}]")
        if last - first + 1 > MAX_PORTS_PER_ADDRESS:
            logger.debug("limiting port range in [%s] to %d ports", address, MAX_PORTS_PER_ADDRESS)
        return list(range(first, min(last, first + MAX_PORTS_PER_ADDRESS - 1) + 1))
    if not (value.isascii() and value.isdigit()):
        raise AddressResolutionError(f"Invalid port in [{address}]")
    port = int(value)
    if port > 65535:
        raise AddressResolutionError(f"Invalid port in [{address}]")
    return [port]


def split_host_port(address: str, default_port: int) -> tuple[str, list[int]]:
    """Split ``host``, ``host:port``, ``host:lo-hi``, ``[v6]:port`` or a bare IPv6 literal."""
    address = address.strip()
    if not address:
        raise AddressResolutionError("Empty address")

    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep or not host:
            raise AddressResolutionError(f"Invalid bracketed host in [{address}]")
        if not rest:
            return host, [default_port]
        if not rest.startswith(":"):
            raise AddressResolutionError(f"Unexpected characters after host in [{address}]")
        return host, _parse_ports(rest[1:], address)

    if address.count(":") > 1:
        # Unbracketed IPv6 literal, no port possible
        try:
            ipaddress.IPv6Address(address)
        except ValueError as e:
            raise AddressResolutionError(f"Invalid IPv6 address [{address}]") from e
        return address, [default_port]

    host, sep, port_part = address.partition(":")
    if not host:
        raise AddressResolutionError(f"Missing host in [{address}]")
    if not sep:
        return host, [default_port]
    return host, _parse_ports(port_part, address)


def resolve_host(host: str) -> list[str]:
    """All distinct addresses ``host`` resolves to, in resolver order."""
    try:
        infos = socket.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    except (socket.gaierror, ValueError) as e:
        raise AddressResolutionError(f"Failed to resolve host [{host}]: {e}") from e
    resolved: list[str] = []
    for _family, _type, _proto, _canonname, sockaddr in infos:
        ip = str(sockaddr[0]).split("%", 1)[0]
        if ip not in resolved:
            resolved.append(ip)
    return resolved


def addresses_from_string(address: str, default_port: int = 9300) -> list[TransportAddress]:
    host, ports = split_host_port(address, default_port)
    addresses = [TransportAddress(host=ip, port=port) for ip in resolve_host(host) for port in ports]
    logger.debug("resolved [%s] to %s", address, [str(a) for a in addresses])
    return addresses

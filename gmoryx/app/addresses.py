# gmoryx/app/addresses.py
# find the LAN address other machines should use to reach this host
import ipaddress
import logging
import socket
from typing import Callable, Iterable, Mapping, NamedTuple, Optional, Sequence

import psutil

from .errors import InterfaceEnumerationFailure

logger = logging.getLogger(__name__)

LOOPBACK_IPV4 = '127.0.0.1'
NO_ADDRESS = 'no address found'


class InterfaceAddress(NamedTuple):
    address: str
    family: int
    loopback: bool = False


class NetworkInterfaceInfo(NamedTuple):
    name: str
    addresses: Sequence[InterfaceAddress]


InterfaceProvider = Callable[[], Mapping[str, Sequence[InterfaceAddress]]]


def psutil_provider() -> Mapping[str, Sequence[InterfaceAddress]]:
    """Snapshot of the host interfaces, in the order the OS reports them."""
    try:
        raw = psutil.net_if_addrs()
    except (OSError, psutil.Error) as e:
        raise InterfaceEnumerationFailure(f"cannot list interfaces: {e}") from e

    interfaces = {}
    for name, snics in raw.items():
        addrs = []
        for snic in snics:
            # AF_LINK / AF_PACKET entries are MAC addresses
            if snic.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            try:
                addrs.append(_make_address(snic.address, snic.family))
            except ValueError:
                logger.debug("skipping %r on %s", snic.address, name)
        interfaces[name] = addrs
    return interfaces


def static_provider(mapping: Mapping[str, Iterable[str]]) -> InterfaceProvider:
    """Provider over fixed literals, e.g. {"eth0": ["127.0.0.1", "::1"]}."""
    frozen = {
        name: [_make_address(a) for a in addrs]
        for name, addrs in mapping.items()
    }

    def provide():
        return frozen
    return provide


def _make_address(literal: str, family: Optional[int] = None) -> InterfaceAddress:
    # psutil reports scoped v6 addresses as fe80::1%eth0
    ip = ipaddress.ip_address(literal.split('%', 1)[0])
    if family is None:
        family = socket.AF_INET6 if ip.version == 6 else socket.AF_INET
    return InterfaceAddress(literal, family, ip.is_loopback)


class AddressResolver:
    def __init__(self, provider: Optional[InterfaceProvider] = None):
        self.provider = provider or psutil_provider

    def interfaces(self) -> list:
        return [NetworkInterfaceInfo(name, tuple(addrs))
                for name, addrs in self.provider().items()]

    def resolve_primary_address(self) -> Optional[str]:
        """
        First IPv4 address that is not 127.0.0.1, in interface order then
        address order. None when there is none or listing is not possible.
        """
        try:
            interfaces = self.interfaces()
        except (InterfaceEnumerationFailure, OSError) as e:
            logger.debug("address resolution skipped: %s", e)
            return None

        for iface in interfaces:
            for addr in iface.addresses:
                if addr.family == socket.AF_INET6:
                    continue
                # only the literal, 127.0.0.2 and friends are kept
                if addr.address == LOOPBACK_IPV4:
                    continue
                logger.debug("resolved %s on %s", addr.address, iface.name)
                return addr.address
        return None


def display_url(address: Optional[str], port: int) -> str:
    if address is None:
        return NO_ADDRESS
    return f"http://{address}:{port}"

import ipaddress
from typing import Mapping

from app.errors import OriginUnresolvable


def resolve_origin(headers: Mapping[str, str], header_name: str) -> str:
    """Return the client address from the forwarding header set by the proxy.

    Only the first (client-most) entry of a comma-separated chain is used.
    """
    raw = headers.get(header_name)
    if not raw:
        raise OriginUnresolvable()
    candidate = raw.split(",")[0].strip()
    try:
        return str(ipaddress.ip_address(candidate))
    except ValueError:
        raise OriginUnresolvable()

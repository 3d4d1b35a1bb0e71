"""
Per-request proxy state derived from the inbound request
"""
from dataclasses import dataclass
from typing import Dict, Optional

from errors import UnresolvedDomain

BODYLESS_METHODS = ('GET', 'HEAD')


@dataclass
class ProxyContext:
    effective_hostname: str
    host_prefix: str
    target_host: str
    domain_suffix: str
    pathname: str
    query: str
    method: str
    headers: Dict[str, str]
    body: Optional[bytes] = None
    # Served under the reserved prefix, mirrored as a same-origin copy of the upstream root
    is_default_host: bool = False


def build_context(mapping, hostname, pathname, query='', method='GET', headers=None, body=None):
    """
    Resolve the inbound hostname and capture everything the forwarder needs

    Raises:
        UnresolvedDomain: no prefix matches, or the prefix has no original domain
    """
    effective_hostname = hostname.lower()

    host_prefix = mapping.resolve(effective_hostname)
    if host_prefix is None:
        raise UnresolvedDomain(effective_hostname)

    target_host = mapping.prefix_to_host(host_prefix)
    if target_host is None:
        raise UnresolvedDomain(effective_hostname)

    method = method.upper()
    if method in BODYLESS_METHODS or not body:
        body = None

    if query and not query.startswith('?'):
        query = f"?{query}"

    return ProxyContext(
        effective_hostname=effective_hostname,
        host_prefix=host_prefix,
        target_host=target_host,
        domain_suffix=effective_hostname[len(host_prefix):],
        pathname=pathname,
        query=query,
        method=method,
        headers=dict(headers or {}),
        body=body,
        is_default_host=host_prefix == mapping.default_prefix,
    )

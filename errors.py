"""
Error types raised by the mirror proxy pipeline
"""


class ProxyError(Exception):
    """Base class for proxy failures"""


class UnresolvedDomain(ProxyError):
    """No proxy mapping applies to the inbound hostname"""

    def __init__(self, hostname):
        super().__init__(f"Domain not configured for proxy: {hostname}")
        self.hostname = hostname


class UpstreamFailure(ProxyError):
    """Building, sending or reading the upstream request failed"""

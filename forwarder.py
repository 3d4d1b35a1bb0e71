"""
Builds and sends the single upstream request for a proxied call
"""
import logging

import requests
from requests.utils import DEFAULT_ACCEPT_ENCODING

from errors import UpstreamFailure
from header_filter import filter_request_headers

logger = logging.getLogger(__name__)

# Paths answered with a fixed external redirect instead of being proxied
REDIRECT_PATHS = ('/', '/login', '/signup', '/copilot')


def local_redirect(pathname, redirect_target, redirect_paths=REDIRECT_PATHS):
    """Return the redirect URL when the path is one of the overridden routes"""
    if pathname in redirect_paths:
        return redirect_target
    return None


def build_upstream_url(context):
    return f"https://{context.target_host}{context.pathname}{context.query}"


def forward(context, timeout=30):
    """
    Send the request upstream without following redirects

    Returns:
        requests.Response with the body already read

    Raises:
        UpstreamFailure: network or protocol error talking to the upstream
    """
    upstream_url = build_upstream_url(context)
    headers = filter_request_headers(context.headers, context.target_host, upstream_url)
    # Bodies are returned decoded, so only ask for encodings the client can undo
    headers['Accept-Encoding'] = DEFAULT_ACCEPT_ENCODING

    logger.debug("Forwarding %s %s", context.method, upstream_url)
    try:
        resp = requests.request(
            method=context.method,
            url=upstream_url,
            headers=headers,
            data=context.body,
            allow_redirects=False,
            timeout=timeout
        )
        # Buffer now so read errors surface here
        resp.content
    except requests.RequestException as e:
        raise UpstreamFailure(f"{context.method} {upstream_url} failed: {e}") from e

    return resp


def upstream_header_items(resp):
    """Upstream response headers as (name, value) pairs, repeated headers kept"""
    return list(resp.raw.headers.items())

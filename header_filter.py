"""
Header policies for the upstream request and the response sent back to the caller
"""
from werkzeug.datastructures import Headers

# Platform and edge headers that must not reach the upstream
REQUEST_HEADERS_TO_SKIP = ('host', 'connection')
REQUEST_HEADER_PREFIXES_TO_SKIP = ('cf-', 'x-forwarded-', 'x-vercel-')

# Body length/encoding may change and upstream policies would block the proxy origin
RESPONSE_HEADERS_TO_SKIP = (
    'content-encoding',
    'content-length',
    'content-security-policy',
    'content-security-policy-report-only',
    'clear-site-data',
    'connection',
    'transfer-encoding',
)

CORS_HEADERS = [
    ('Access-Control-Allow-Origin', '*'),
    ('Access-Control-Allow-Credentials', 'true'),
]
CACHE_CONTROL = 'public, max-age=14400'

PREFLIGHT_HEADERS = [
    ('Access-Control-Allow-Methods', 'GET, POST, PUT, DELETE, OPTIONS'),
    ('Access-Control-Allow-Headers', '*'),
    ('Access-Control-Max-Age', '86400'),
]


def _skip_request_header(name):
    lower_name = name.lower()
    return lower_name in REQUEST_HEADERS_TO_SKIP or lower_name.startswith(REQUEST_HEADER_PREFIXES_TO_SKIP)


def filter_request_headers(headers, target_host, upstream_url):
    """
    Headers to send upstream

    Args:
        headers: Inbound (name, value) pairs or mapping
        target_host: Original domain the request is forwarded to
        upstream_url: Full upstream URL, sent as the Referer
    """
    items = headers.items() if hasattr(headers, 'items') else headers
    filtered = {name: value for name, value in items if not _skip_request_header(name)}
    filtered['Host'] = target_host
    filtered['Referer'] = upstream_url
    return filtered


def filter_response_headers(upstream_headers):
    """
    Headers to return to the caller: the CORS and cache base plus the
    allowed upstream headers, upstream values replacing base values
    """
    headers = Headers(CORS_HEADERS + [('Cache-Control', CACHE_CONTROL)])

    passed = [(name, value) for name, value in upstream_headers
              if name.lower() not in RESPONSE_HEADERS_TO_SKIP]
    for name in {name.lower() for name, _ in passed}:
        headers.remove(name)
    headers.extend(passed)
    return headers


def preflight_headers():
    """Headers answering a CORS preflight without contacting the upstream"""
    return Headers(CORS_HEADERS + PREFLIGHT_HEADERS)

"""
Domain mirror proxy
Forwards requests to the mirrored upstream domains and rewrites every
upstream domain reference to its proxy domain under the caller's hostname
"""

import os
import traceback
from datetime import datetime
from urllib.parse import quote, urlsplit
from flask import Flask, request, jsonify, Response

from domain_mapping import load_domain_mapping
from errors import UnresolvedDomain
from forwarder import forward, local_redirect, upstream_header_items
from header_filter import filter_response_headers, preflight_headers
from path_sanitizer import sanitize
from proxy_context import build_context
from rewriter import is_redirect, rewrite_body, rewrite_redirect

app = Flask(__name__)
# Proxied paths are forwarded verbatim, nested URLs included
app.url_map.merge_slashes = False

# Configuration
DOMAIN_MAPPINGS_FILE = os.environ.get('DOMAIN_MAPPINGS_FILE')
REDIRECT_TARGET = os.environ.get('REDIRECT_TARGET', 'https://blog.miaizhe.xyz')
REQUEST_TIMEOUT = int(os.environ.get('REQUEST_TIMEOUT', '30'))
APP_ENV = os.environ.get('APP_ENV', 'production')
LOG_DIR = os.environ.get('LOG_DIR', '/tmp/proxyLogs')

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]

DOMAIN_MAPPING = load_domain_mapping(DOMAIN_MAPPINGS_FILE)


def log(msg):
    """Log message to stdout and file"""
    timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
    log_line = f"[{timestamp}] {msg}"
    print(log_line, flush=True)

    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        log_file = os.path.join(LOG_DIR, f"proxy_{datetime.now().strftime('%Y-%m-%d')}.log")
        with open(log_file, 'a') as f:
            f.write(log_line + '\n')
    except OSError:
        pass


def inbound_path():
    """Request path as the caller sent it, percent-escapes intact"""
    raw_uri = request.environ.get('RAW_URI') or request.environ.get('REQUEST_URI')
    if raw_uri:
        if raw_uri.startswith('/'):
            return raw_uri.split('?', 1)[0]
        return urlsplit(raw_uri).path or '/'
    return quote(request.path, safe="/:@!$&'()*+,;=~%")


def proxy_error_response(error):
    """502 JSON body for any failure past the domain lookup"""
    body = {
        "error": "Proxy Error",
        "message": str(error)
    }
    if APP_ENV == 'development':
        body["stack"] = ''.join(traceback.format_exception(type(error), error, error.__traceback__))
    return jsonify(body), 502


def handle_request():
    """Run one inbound request through the proxy pipeline"""
    mapping = DOMAIN_MAPPING

    if request.method == 'OPTIONS':
        return Response(status=200, headers=preflight_headers())

    pathname = inbound_path()
    redirect_url = local_redirect(pathname, REDIRECT_TARGET)
    if redirect_url:
        return Response(status=302, headers={'Location': redirect_url})

    context = build_context(
        mapping,
        hostname=request.host,
        pathname=sanitize(pathname),
        query=request.query_string.decode('latin-1'),
        method=request.method,
        headers=request.headers,
        body=request.get_data()
    )
    rules = mapping.rewrite_rules(context.domain_suffix)

    resp = forward(context, timeout=REQUEST_TIMEOUT)
    log(f"🔁 {context.method} {context.effective_hostname}{context.pathname} -> {context.target_host} [{resp.status_code}]")

    location = resp.headers.get('Location')
    if is_redirect(resp.status_code, location):
        new_location = rewrite_redirect(location, rules)
        if new_location != location:
            log(f"↪️ Rewrote redirect: {location} -> {new_location}")
        return Response(status=resp.status_code, headers={'Location': new_location})

    headers = filter_response_headers(upstream_header_items(resp))
    body = rewrite_body(resp.content, resp.headers.get('Content-Type', ''), rules, context)
    return Response(body, status=resp.status_code, headers=headers)


@app.route('/', defaults={'path': ''}, methods=PROXY_METHODS)
@app.route('/<path:path>', methods=PROXY_METHODS)
def proxy(path):
    """Mirror any path on any configured proxy hostname"""
    try:
        return handle_request()
    except UnresolvedDomain as e:
        log(f"❓ {e}")
        return Response("Domain not configured for proxy", 404, mimetype='text/plain')
    except Exception as e:
        log(f"❌ Proxy error: {e}")
        return proxy_error_response(e)


if __name__ == '__main__':
    # Local development
    app.run(host='0.0.0.0', port=int(os.environ.get('PORT', 8000)), debug=False)

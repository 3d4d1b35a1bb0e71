"""
Rewrites upstream response bodies and redirect targets so every reference
to a mirrored domain points at its proxy domain instead
"""
import codecs
import logging
import re

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPES = ('text/', 'application/json', 'application/javascript', 'application/xml')

REDIRECT_STATUSES = (301, 302, 303, 307, 308)

# A root-relative reference opening a quoted attribute or string; skips
# protocol-relative (//) and scheme-qualified (e.g. /javascript:) values
SITE_RELATIVE_PATTERN = re.compile(r"(?<=[\"'])/(?!/|[a-zA-Z]+:)")

_CHARSET_PATTERN = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)


def is_textual(content_type):
    content_type = content_type or ''
    return any(kind in content_type for kind in TEXT_CONTENT_TYPES)


def _charset(content_type):
    match = _CHARSET_PATTERN.search(content_type or '')
    if match:
        charset = match.group(1)
        try:
            codecs.lookup(charset)
            return charset
        except LookupError:
            logger.debug("Unknown charset %s, falling back to utf-8", charset)
    return 'utf-8'


def rewrite_text(text, rules, context):
    """Apply every rewrite rule, plus the site-relative pass on the default host"""
    for rule in rules:
        text = rule.apply(text)

    if context.is_default_host:
        text = SITE_RELATIVE_PATTERN.sub(f"https://{context.effective_hostname}/", text)

    return text


def rewrite_body(body, content_type, rules, context):
    """
    Rewrite a buffered upstream body

    Args:
        body: Raw upstream bytes
        content_type: Upstream Content-Type header value
        rules: RewriteRule list for this request
        context: ProxyContext of the request

    Returns:
        bytes: The rewritten body, or the original bytes for non-text content
    """
    if not is_textual(content_type):
        return body

    charset = _charset(content_type)
    text = body.decode(charset, errors='replace')
    return rewrite_text(text, rules, context).encode(charset, errors='replace')


def is_redirect(status_code, location):
    return status_code in REDIRECT_STATUSES and bool(location)


def rewrite_redirect(location, rules):
    """Swap the first mirrored domain found in a Location value for its proxy domain"""
    for rule in rules:
        if rule.original_domain in location:
            return location.replace(rule.original_domain, rule.proxy_domain, 1)
    return location

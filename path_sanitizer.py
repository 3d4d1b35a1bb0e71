"""
Repairs asset paths that picked up a nested absolute URL

Relative links on the commit-info endpoints sometimes resolve against the
proxied page and append a second absolute URL after the real path, e.g.
/owner/repo/latest-commit/main/https://example.com/x
"""
import logging
import re

logger = logging.getLogger(__name__)

COMMIT_INFO_MARKERS = ('latest-commit', 'tree-commit-info')

_REAL_PATH = r"(/[^/]+/[^/]+/(?:%s)/[^/]+)" % '|'.join(re.escape(m) for m in COMMIT_INFO_MARKERS)

NESTED_URL_PATTERNS = (
    re.compile(_REAL_PATH + r"/https%3A//[^/]+/.*", re.IGNORECASE | re.DOTALL),
    re.compile(_REAL_PATH + r"/https://[^/]+/.*", re.DOTALL),
)


def sanitize(pathname):
    """Truncate a nested absolute URL back to the commit-info path it was appended to"""
    cleaned = pathname
    for pattern in NESTED_URL_PATTERNS:
        cleaned = pattern.sub(r"\1", cleaned, count=1)
    if cleaned != pathname:
        logger.debug("Collapsed nested URL path %s -> %s", pathname, cleaned)
    return cleaned

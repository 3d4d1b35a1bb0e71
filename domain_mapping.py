"""
Static mapping between upstream domains and proxy hostname prefixes
Built once at startup and shared read-only by every request
"""
import json
import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern

logger = logging.getLogger(__name__)

# Reserved prefix for the primary mirrored host
DEFAULT_PREFIX = 'gh.'
DEFAULT_TARGET = 'github.com'

DEFAULT_DOMAIN_MAPPINGS = {
    'github.com': 'v-gh.',
    'avatars.githubusercontent.com': 'v-avatars-githubusercontent-com.',
    'github.githubassets.com': 'v-github-githubassets-com.',
    'collector.github.com': 'v-collector-github-com.',
    'api.github.com': 'v-api-github-com.',
    'raw.githubusercontent.com': 'v-raw-githubusercontent-com.',
    'gist.githubusercontent.com': 'v-gist-githubusercontent-com.',
    'github.io': 'v-github-io.',
    'assets-cdn.github.com': 'v-assets-cdn-github-com.',
    'cdn.jsdelivr.net': 'v-cdn.jsdelivr-net.',
    'securitylab.github.com': 'v-securitylab-github-com.',
    'www.githubstatus.com': 'v-www-githubstatus-com.',
    'npmjs.com': 'v-npmjs-com.',
    'git-lfs.github.com': 'v-git-lfs-github-com.',
    'githubusercontent.com': 'v-githubusercontent-com.',
    'github.global.ssl.fastly.net': 'v-github-global-ssl-fastly-net.',
    'api.npms.io': 'v-api-npms-io.',
    'github.community': 'v-github-community.',
}


def _domain_matcher(domain: str) -> Pattern:
    # Absolute (http/https) or protocol-relative reference, ending at a path,
    # quote, whitespace or end of text
    return re.compile(rf"(https?:)?//{re.escape(domain)}(?=[/\"'\s]|\Z)")


@dataclass(frozen=True)
class RewriteRule:
    """An upstream domain paired with its full proxy domain for one request"""
    original_domain: str
    proxy_domain: str
    matcher: Pattern

    def apply(self, text: str) -> str:
        """Replace every absolute and protocol-relative reference to the original domain"""
        def _replace(match):
            scheme = 'https:' if match.group(1) else ''
            return f"{scheme}//{self.proxy_domain}"
        return self.matcher.sub(_replace, text)


class DomainMapping:
    """Bidirectional lookup between original domains and proxy prefixes"""

    def __init__(self, mappings, default_target=DEFAULT_TARGET, default_prefix=DEFAULT_PREFIX):
        """
        Build the lookup indexes

        Args:
            mappings: Ordered (original_domain, proxy_prefix) pairs or a dict
            default_target: Original domain served under the reserved prefix
            default_prefix: Reserved prefix resolved ahead of the table
        """
        pairs = list(mappings.items()) if isinstance(mappings, dict) else list(mappings)

        self._prefix_to_host: Dict[str, str] = {}
        self._host_to_prefix: Dict[str, str] = {}
        self._matchers: Dict[str, Pattern] = {}

        for original_domain, proxy_prefix in pairs:
            original_domain = original_domain.lower()
            proxy_prefix = proxy_prefix.lower()
            if '/' in proxy_prefix:
                raise ValueError(f"Invalid proxy prefix {proxy_prefix!r}: must not contain '/'")
            if proxy_prefix == default_prefix:
                raise ValueError(f"Proxy prefix {proxy_prefix!r} is reserved")
            if original_domain in self._host_to_prefix:
                raise ValueError(f"Duplicate original domain {original_domain!r}")
            if proxy_prefix in self._prefix_to_host:
                raise ValueError(f"Duplicate proxy prefix {proxy_prefix!r}")
            self._prefix_to_host[proxy_prefix] = original_domain
            self._host_to_prefix[original_domain] = proxy_prefix
            self._matchers[original_domain] = _domain_matcher(original_domain)

        if default_target not in self._host_to_prefix:
            raise ValueError(f"Default target {default_target!r} is not in the mapping")

        self.default_target = default_target
        self.default_prefix = default_prefix

    @classmethod
    def from_dict(cls, mappings, **kwargs):
        return cls(list(mappings.items()), **kwargs)

    def __len__(self):
        return len(self._host_to_prefix)

    def items(self):
        """(original_domain, proxy_prefix) pairs in table order"""
        return list(self._host_to_prefix.items())

    def resolve(self, hostname: str) -> Optional[str]:
        """Find the proxy prefix for a lower-cased hostname"""
        if hostname.startswith(self.default_prefix):
            return self.default_prefix
        for proxy_prefix in self._prefix_to_host:
            if hostname.startswith(proxy_prefix):
                return proxy_prefix
        return None

    def prefix_to_host(self, proxy_prefix: str) -> Optional[str]:
        if proxy_prefix == self.default_prefix:
            return self.default_target
        return self._prefix_to_host.get(proxy_prefix)

    def host_to_prefix(self, original_domain: str) -> Optional[str]:
        return self._host_to_prefix.get(original_domain)

    def rewrite_rules(self, domain_suffix: str) -> List[RewriteRule]:
        """Rules mapping every original domain to its proxy domain under the given suffix"""
        return [
            RewriteRule(original_domain, f"{proxy_prefix}{domain_suffix}", self._matchers[original_domain])
            for original_domain, proxy_prefix in self._host_to_prefix.items()
        ]


def load_domain_mapping(path=None) -> DomainMapping:
    """Load the mapping from a JSON object file, or the built-in table when no path is given"""
    if not path:
        return DomainMapping.from_dict(DEFAULT_DOMAIN_MAPPINGS)

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Error loading domain mappings from {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Domain mappings in {path} must be a JSON object")

    logger.info("Loaded %d domain mappings from %s", len(data), path)
    return DomainMapping.from_dict(data)

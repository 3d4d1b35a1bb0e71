"""
Tests for the domain mapping table and prefix resolution
"""

import json

import pytest

from domain_mapping import DomainMapping, DEFAULT_DOMAIN_MAPPINGS, load_domain_mapping
from errors import UnresolvedDomain
from proxy_context import build_context


def test_reserved_prefix_resolves_first(mapping):
    """Hostnames under gh. map to the primary domain"""
    assert mapping.resolve('gh.example.com') == 'gh.'
    assert mapping.prefix_to_host('gh.') == 'github.com'


@pytest.mark.parametrize('original,prefix', list(DEFAULT_DOMAIN_MAPPINGS.items()))
def test_resolve_round_trips(mapping, original, prefix):
    hostname = f"{prefix}mirror.example.org"
    assert mapping.resolve(hostname) == prefix
    assert mapping.prefix_to_host(prefix) == original
    assert mapping.host_to_prefix(original) == prefix


def test_unknown_hostname(mapping):
    assert mapping.resolve('www.example.com') is None
    assert mapping.prefix_to_host('www.') is None


def test_table_order_is_kept(mapping):
    assert [original for original, _ in mapping.items()] == list(DEFAULT_DOMAIN_MAPPINGS)
    assert len(mapping) == len(DEFAULT_DOMAIN_MAPPINGS)


def test_rewrite_rules_use_suffix(mapping):
    rules = mapping.rewrite_rules('example.com')
    by_domain = {rule.original_domain: rule.proxy_domain for rule in rules}
    assert by_domain['github.com'] == 'v-gh.example.com'
    assert by_domain['cdn.jsdelivr.net'] == 'v-cdn.jsdelivr-net.example.com'


@pytest.mark.parametrize('pairs,message', [
    ([('github.com', 'v-gh.'), ('gitlab.com', 'v-gh.')], 'Duplicate proxy prefix'),
    ([('github.com', 'v-gh.'), ('github.com', 'v-other.')], 'Duplicate original domain'),
    ([('github.com', 'v-gh/')], "must not contain '/'"),
    ([('github.com', 'gh.')], 'reserved'),
    ([('gitlab.com', 'v-gl.')], 'Default target'),
])
def test_invalid_tables_rejected(pairs, message):
    with pytest.raises(ValueError, match=message):
        DomainMapping(pairs)


def test_load_default_table():
    assert load_domain_mapping(None).items() == list(DEFAULT_DOMAIN_MAPPINGS.items())


def test_load_from_file(tmp_path):
    path = tmp_path / 'mappings.json'
    path.write_text(json.dumps({'github.com': 'hub.', 'raw.githubusercontent.com': 'raw.'}))

    mapping = load_domain_mapping(str(path))
    assert mapping.resolve('raw.example.com') == 'raw.'
    assert mapping.prefix_to_host('gh.') == 'github.com'


def test_load_bad_file(tmp_path):
    path = tmp_path / 'mappings.json'
    path.write_text('["github.com"]')
    with pytest.raises(ValueError):
        load_domain_mapping(str(path))

    with pytest.raises(ValueError):
        load_domain_mapping(str(tmp_path / 'missing.json'))


def test_build_context_splits_hostname(mapping):
    context = build_context(mapping, 'V-API-GitHub-Com.Example.com', '/repos/o/r', 'page=2', 'get')
    assert context.effective_hostname == 'v-api-github-com.example.com'
    assert context.host_prefix == 'v-api-github-com.'
    assert context.target_host == 'api.github.com'
    assert context.domain_suffix == 'example.com'
    assert context.query == '?page=2'
    assert context.method == 'GET'
    assert not context.is_default_host


def test_build_context_default_host(mapping):
    context = build_context(mapping, 'gh.example.com', '/o/r', method='POST', body=b'x=1')
    assert context.target_host == 'github.com'
    assert context.is_default_host
    assert context.body == b'x=1'


def test_build_context_drops_body_for_get(mapping):
    context = build_context(mapping, 'gh.example.com', '/o/r', method='GET', body=b'ignored')
    assert context.body is None


def test_build_context_exact_prefix_has_empty_suffix(mapping):
    context = build_context(mapping, 'v-gh.', '/')
    assert context.domain_suffix == ''


def test_build_context_unresolved(mapping):
    with pytest.raises(UnresolvedDomain):
        build_context(mapping, 'example.com', '/')

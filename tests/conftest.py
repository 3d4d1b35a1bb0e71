"""
Shared fixtures: Flask test client and a fake upstream for requests.request
"""

import io

import pytest
import requests
from requests.adapters import HTTPAdapter
from urllib3.response import HTTPResponse

import mirror_proxy
from domain_mapping import DomainMapping, DEFAULT_DOMAIN_MAPPINGS


def make_upstream_response(status=200, body=b'', headers=None, url='https://github.com/'):
    """Build a real requests.Response around an in-memory body"""
    raw = HTTPResponse(
        body=io.BytesIO(body),
        headers=headers or {},
        status=status,
        preload_content=False,
    )
    prepared = requests.Request('GET', url).prepare()
    return HTTPAdapter().build_response(prepared, raw)


class FakeUpstream:
    """Stands in for requests.request and records every call"""

    def __init__(self):
        self.calls = []
        self.response = make_upstream_response()
        self.error = None

    def respond(self, status=200, body=b'', headers=None):
        self.response = make_upstream_response(status, body, headers)

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


@pytest.fixture
def mapping():
    return DomainMapping.from_dict(DEFAULT_DOMAIN_MAPPINGS)


@pytest.fixture
def upstream(monkeypatch):
    fake = FakeUpstream()
    monkeypatch.setattr(requests, 'request', fake)
    return fake


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(mirror_proxy, 'LOG_DIR', str(tmp_path))
    monkeypatch.setattr(mirror_proxy, 'APP_ENV', 'production')
    mirror_proxy.app.config['TESTING'] = True
    with mirror_proxy.app.test_client() as client:
        yield client

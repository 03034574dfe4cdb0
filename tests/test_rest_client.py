from __future__ import annotations

import io
import json

import pytest

from srccli.config import ClientConfig
from srccli.errors import APIError
from srccli.logging import StructuredLogger
from srccli.rest import USER_AGENT, SourceCraftClient


def _client(session, **config) -> SourceCraftClient:
    return SourceCraftClient(ClientConfig(**config), session=session)


def test_get_sends_headers_params_and_timeout(make_session):
    session = make_session((200, {'id': 'r1'}))
    client = _client(session, api_url='https://api.example.com', token='secret', timeout=7.5)

    data = client.get('/orgs/acme/repos', params={'page_size': 5, 'page_token': None, 'q': ''})

    assert data == {'id': 'r1'}
    method, url, kwargs = session.request_log[0]
    assert method == 'GET'
    assert url == 'https://api.example.com/orgs/acme/repos'
    assert kwargs['params'] == {'page_size': 5}
    assert kwargs['timeout'] == 7.5
    headers = kwargs['headers']
    assert headers['Authorization'] == 'Bearer secret'
    assert headers['Accept'] == 'application/json'
    assert headers['User-Agent'] == USER_AGENT


def test_no_authorization_without_token(make_session):
    session = make_session((200, {}))
    _client(session).get('me')
    assert 'Authorization' not in session.request_log[0][2]['headers']
    assert session.request_log[0][2]['params'] is None


def test_post_sends_json_body(make_session):
    session = make_session((201, {'slug': 'new'}))
    client = _client(session)
    result = client.post('orgs/acme/repos', {'name': 'new'}, params={'silent': 'true'})
    method, _, kwargs = session.request_log[0]
    assert method == 'POST'
    assert kwargs['json'] == {'name': 'new'}
    assert kwargs['params'] == {'silent': 'true'}
    assert result == {'slug': 'new'}


def test_patch_defaults_to_empty_body(make_session):
    session = make_session((200, {}))
    _client(session).patch('repos/a/b/issues/1')
    method, _, kwargs = session.request_log[0]
    assert method == 'PATCH'
    assert kwargs['json'] == {}


def test_absolute_url_passes_through(make_session):
    session = make_session((200, {}))
    _client(session).get('https://other.example.com/logs')
    assert session.request_log[0][1] == 'https://other.example.com/logs'


def test_list_payload_wrapped_in_items(make_session):
    session = make_session((200, [{'id': 1}, {'id': 2}]))
    assert _client(session).get('x') == {'items': [{'id': 1}, {'id': 2}]}


def test_empty_body_returns_empty_mapping(make_session):
    session = make_session((204, None))
    assert _client(session).post('x') == {}


def test_error_status_raises_api_error(make_session):
    session = make_session((404, {'message': 'not found'}))
    with pytest.raises(APIError) as info:
        _client(session, api_url='https://api.example.com').get('repos/a/b')
    err = info.value
    assert err.status == 404
    assert 'GET https://api.example.com/repos/a/b failed with HTTP 404' in str(err)
    assert json.loads(err.response_text or '') == {'message': 'not found'}


def test_invalid_json_raises_api_error(make_session):
    session = make_session((200, 'not json at all'))
    with pytest.raises(APIError, match='invalid JSON'):
        _client(session).get('x')


def test_requests_are_logged(make_session):
    buf = io.StringIO()
    logger = StructuredLogger(name='test-rest', json_logging=True, level='DEBUG', stream=buf)
    session = make_session((200, {}))
    config = ClientConfig(api_url='https://api.example.com')
    client = SourceCraftClient(config, session=session, logger=logger)
    client.get('me')
    entry = json.loads(buf.getvalue().splitlines()[0])
    assert entry['operation'] == 'http_request'
    assert entry['url'] == 'https://api.example.com/me'
    assert entry['status'] == 200

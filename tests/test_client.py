"""Tests for the OAuth 1.0 client flow."""

import typing as t
from unittest.mock import MagicMock

import httpx
import pytest
from oauth1_client import (
    AuthFlow,
    AuthorizationDeniedError,
    ConfigurationError,
    FlowState,
    MappingRequestReader,
    MemoryStateStore,
    OAuth1Client,
    OAuth1Config,
    OAuthToken,
    OAuthTokenError,
    PlaintextMethod,
    Request,
    StateMismatchError,
)

from tests.conftest import RecordingTransport

REQUEST_TOKEN_RESPONSE = {'oauth_token': 'abc123', 'oauth_token_secret': 'request_secret', 'oauth_callback_confirmed': 'true'}
ACCESS_TOKEN_RESPONSE = {'oauth_token': 'access123', 'oauth_token_secret': 'access_secret', 'user_id': '42'}


@pytest.fixture
def store() -> MemoryStateStore:
    return MemoryStateStore()


@pytest.fixture
def oauth_client(config: OAuth1Config, transport: RecordingTransport, store: MemoryStateStore) -> OAuth1Client:
    return OAuth1Client(config, signature_method=PlaintextMethod(), transport=transport, state_store=store)


def _request_token_key(client: OAuth1Client) -> str:
    return client.state_key_prefix + 'requestToken'


def test_client_is_auth_flow(oauth_client: OAuth1Client) -> None:
    assert isinstance(oauth_client, AuthFlow)
    assert oauth_client.state is FlowState.UNAUTHENTICATED


def test_fetch_request_token(oauth_client: OAuth1Client, transport: RecordingTransport, store: MemoryStateStore) -> None:
    transport.responses.append(REQUEST_TOKEN_RESPONSE)

    token = oauth_client.fetch_request_token()

    assert token.token == 'abc123'
    assert token.token_secret == 'request_secret'
    assert token.callback_confirmed
    assert store.get(_request_token_key(oauth_client)) == token
    assert oauth_client.state is FlowState.REQUEST_TOKEN_OBTAINED

    sent = transport.sent[0]
    assert sent.method == 'GET'
    assert sent.url.startswith('https://provider.example.com/oauth/request_token?')
    params = sent.query_params
    assert params['oauth_consumer_key'] == 'test_consumer_key'
    assert params['oauth_callback'] == 'https://consumer.example.com/callback'
    assert params['oauth_signature'] == 'test_consumer_secret&'


def test_fetch_request_token_with_scope_and_post(transport: RecordingTransport) -> None:
    config = OAuth1Config(
        consumer_key='key',
        consumer_secret='secret',
        request_token_url='https://provider.example.com/request_token',
        authorize_url='https://provider.example.com/authorize',
        access_token_url='https://provider.example.com/access_token',
        request_token_method='post',
        scope='read write',
    )
    client = OAuth1Client(config, transport=transport)
    transport.responses.append(REQUEST_TOKEN_RESPONSE)

    client.fetch_request_token({'x_auth_access_type': 'read'})

    sent = transport.sent[0]
    assert sent.method == 'POST'
    assert sent.query_params == {'scope': 'read write', 'x_auth_access_type': 'read'}
    header = sent.get_header('Authorization')
    assert 'oauth_consumer_key="key"' in header
    assert 'oauth_signature_method="HMAC-SHA1"' in header
    assert 'oauth_callback="oob"' in header


def test_fetch_request_token_clears_access_token(
    oauth_client: OAuth1Client, transport: RecordingTransport
) -> None:
    oauth_client.access_token = OAuthToken(token='old', token_secret='old_secret')
    transport.responses.append(REQUEST_TOKEN_RESPONSE)

    oauth_client.fetch_request_token()

    assert oauth_client.access_token is None
    assert transport.sent[0].query_params['oauth_signature'] == 'test_consumer_secret&'


def test_fetch_request_token_without_token_in_response(
    oauth_client: OAuth1Client, transport: RecordingTransport
) -> None:
    transport.responses.append({'error': 'nope'})

    with pytest.raises(OAuthTokenError):
        oauth_client.fetch_request_token()
    assert oauth_client.state is FlowState.FAILED


def test_transport_errors_propagate(config: OAuth1Config) -> None:
    transport = MagicMock()
    transport.build.side_effect = lambda method, url, **kwargs: Request(method, url)
    transport.send.side_effect = httpx.ConnectError('boom')
    client = OAuth1Client(config, transport=transport)

    with pytest.raises(httpx.ConnectError):
        client.fetch_request_token()
    assert client.state is FlowState.FAILED


def test_build_auth_url(oauth_client: OAuth1Client) -> None:
    url = oauth_client.build_auth_url(OAuthToken(token='abc123'), {'force_login': 'true'})
    assert url == 'https://provider.example.com/oauth/authorize?force_login=true&oauth_token=abc123'


def test_build_auth_url_uses_stored_token(oauth_client: OAuth1Client, transport: RecordingTransport) -> None:
    transport.responses.append(REQUEST_TOKEN_RESPONSE)
    oauth_client.fetch_request_token()

    assert oauth_client.build_auth_url() == 'https://provider.example.com/oauth/authorize?oauth_token=abc123'


def test_build_auth_url_without_request_token(oauth_client: OAuth1Client) -> None:
    with pytest.raises(ConfigurationError):
        oauth_client.build_auth_url()


def test_fetch_access_token(oauth_client: OAuth1Client, transport: RecordingTransport, store: MemoryStateStore) -> None:
    transport.responses.extend([REQUEST_TOKEN_RESPONSE, ACCESS_TOKEN_RESPONSE])
    oauth_client.fetch_request_token()

    token = oauth_client.fetch_access_token('abc123', oauth_verifier='verifier')

    assert token.token == 'access123'
    assert token.get_param('user_id') == '42'
    assert oauth_client.access_token == token
    assert oauth_client.state is FlowState.AUTHENTICATED
    assert store.get(_request_token_key(oauth_client)) is None

    params = transport.sent[1].query_params
    assert params['oauth_token'] == 'abc123'
    assert params['oauth_verifier'] == 'verifier'
    assert params['oauth_signature'] == 'test_consumer_secret&request_secret'


def test_fetch_access_token_state_mismatch(
    oauth_client: OAuth1Client, transport: RecordingTransport, store: MemoryStateStore
) -> None:
    store.set(_request_token_key(oauth_client), OAuthToken(token='abc123', token_secret='secret'))

    with pytest.raises(StateMismatchError) as exc_info:
        oauth_client.fetch_access_token('xyz789')

    assert exc_info.value.status_code == 400
    assert oauth_client.state is FlowState.FAILED
    assert not transport.sent
    assert store.get(_request_token_key(oauth_client)) is not None


def test_fetch_access_token_without_request_token(oauth_client: OAuth1Client) -> None:
    with pytest.raises(ConfigurationError):
        oauth_client.fetch_access_token('abc123')


def test_fetch_access_token_with_explicit_request_token(
    oauth_client: OAuth1Client, transport: RecordingTransport
) -> None:
    transport.responses.append(ACCESS_TOKEN_RESPONSE)

    token = oauth_client.fetch_access_token('req', OAuthToken(token='req', token_secret='req_secret'))

    assert token.token == 'access123'
    assert 'oauth_verifier' not in transport.sent[0].query_params


def test_fetch_access_token_reads_incoming_request(
    config: OAuth1Config, transport: RecordingTransport, store: MemoryStateStore
) -> None:
    OAuth1Client(config, transport=transport, state_store=store)._set_state(
        'requestToken', OAuthToken(token='abc123', token_secret='secret')
    )
    incoming = MappingRequestReader(query={'oauth_token': 'abc123'}, body={'oauth_verifier': 'from_body'})
    client = OAuth1Client(config, transport=transport, state_store=store, incoming=incoming)
    assert client.state is FlowState.REQUEST_TOKEN_OBTAINED
    transport.responses.append(ACCESS_TOKEN_RESPONSE)

    client.fetch_access_token()

    assert transport.sent[0].query_params['oauth_verifier'] == 'from_body'


def test_access_token_request_is_signed_once(config: OAuth1Config, transport: RecordingTransport) -> None:
    config = OAuth1Config(
        consumer_key=config.consumer_key,
        consumer_secret=config.consumer_secret,
        request_token_url=config.request_token_url,
        authorize_url=config.authorize_url,
        access_token_url=config.access_token_url,
        access_token_method='POST',
    )
    client = OAuth1Client(config, signature_method=PlaintextMethod(), transport=transport)
    transport.responses.append(ACCESS_TOKEN_RESPONSE)

    client.fetch_access_token('req', OAuthToken(token='req', token_secret='req_secret'), 'verifier')

    sent = transport.sent[0]
    header = sent.get_header('Authorization')
    assert header.count('oauth_signature=') == 1
    assert 'oauth_signature="test_consumer_secret%26req_secret"' in header
    assert not any(name.startswith('oauth') for name in sent.query_params)


def test_handle_callback_denied(config: OAuth1Config, transport: RecordingTransport, store: MemoryStateStore) -> None:
    incoming = MappingRequestReader.from_url('https://consumer.example.com/callback?denied=abc123')
    client = OAuth1Client(config, transport=transport, state_store=store, incoming=incoming)
    client._set_state('requestToken', OAuthToken(token='abc123'))

    with pytest.raises(AuthorizationDeniedError):
        client.handle_callback()

    assert client.state is FlowState.CANCELLED
    assert store.get(_request_token_key(client)) is None
    assert not transport.sent


def test_handle_callback_success(config: OAuth1Config, transport: RecordingTransport, store: MemoryStateStore) -> None:
    incoming = MappingRequestReader.from_url(
        'https://consumer.example.com/callback?oauth_token=abc123&oauth_verifier=v'
    )
    client = OAuth1Client(config, transport=transport, state_store=store, incoming=incoming)
    client._set_state('requestToken', OAuthToken(token='abc123', token_secret='secret'))
    transport.responses.append(ACCESS_TOKEN_RESPONSE)

    token = client.handle_callback()

    assert token.token == 'access123'
    assert client.state is FlowState.AUTHENTICATED


def test_handle_callback_without_reader(oauth_client: OAuth1Client) -> None:
    with pytest.raises(ConfigurationError):
        oauth_client.handle_callback()


def test_access_token_is_restored_from_store(config: OAuth1Config, store: MemoryStateStore) -> None:
    token = OAuthToken(token='access123', token_secret='access_secret')
    OAuth1Client(config, state_store=store).access_token = token

    client = OAuth1Client(config, state_store=store)

    assert client.access_token == token
    assert client.state is FlowState.AUTHENTICATED
    assert client.signer.compose_signature_key() == 'test_consumer_secret&access_secret'


def test_state_key_prefix(config: OAuth1Config) -> None:
    assert OAuth1Client(config).state_key_prefix == 'OAuth1Client_test_consumer_key_'


def test_apply_access_token_to_request(oauth_client: OAuth1Client) -> None:
    request = Request('GET', 'https://api.example.com/resource?foo=bar')

    applied = oauth_client.apply_access_token_to_request(request, OAuthToken(token='access123'))

    assert applied.query_params == {
        'foo': 'bar',
        'oauth_consumer_key': 'test_consumer_key',
        'oauth_token': 'access123',
    }
    assert 'oauth_signature' not in applied.query_params
    assert request.query_params == {'foo': 'bar'}


def test_apply_access_token_to_post_request(oauth_client: OAuth1Client) -> None:
    applied = oauth_client.apply_access_token_to_request(
        Request('POST', 'https://api.example.com/resource'), OAuthToken(token='access123')
    )
    assert applied.body_params == {'oauth_consumer_key': 'test_consumer_key', 'oauth_token': 'access123'}


def test_refresh_access_token_is_noop(oauth_client: OAuth1Client) -> None:
    assert oauth_client.refresh_access_token(OAuthToken(token='access123')) is None


def test_api_requires_access_token(oauth_client: OAuth1Client) -> None:
    with pytest.raises(ConfigurationError):
        oauth_client.api('GET', 'https://api.example.com/resource')


@pytest.mark.parametrize('method', ['GET', 'POST'])
def test_api_signs_with_access_token(
    oauth_client: OAuth1Client, transport: RecordingTransport, method: str
) -> None:
    oauth_client.access_token = OAuthToken(token='access123', token_secret='access_secret')
    transport.responses.append({'ok': True})

    result = oauth_client.api(method, 'https://api.example.com/resource', {'status': 'hi'})

    assert result == {'ok': True}
    sent: t.Any = transport.sent[0]
    if method == 'GET':
        assert sent.query_params['oauth_signature'] == 'test_consumer_secret&access_secret'
        assert sent.query_params['status'] == 'hi'
    else:
        assert 'oauth_signature="test_consumer_secret%26access_secret"' in sent.get_header('Authorization')
        assert sent.body_params == {'status': 'hi'}


def test_fetch_request_token_without_callback_url_sends_oob(transport: RecordingTransport) -> None:
    config = OAuth1Config(
        consumer_key='key',
        consumer_secret='secret',
        request_token_url='https://provider.example.com/request_token',
        authorize_url='https://provider.example.com/authorize',
        access_token_url='https://provider.example.com/access_token',
    )
    client = OAuth1Client(config, transport=transport)
    transport.responses.append(REQUEST_TOKEN_RESPONSE)

    client.fetch_request_token()

    assert transport.sent[0].query_params['oauth_callback'] == 'oob'


def test_auth_flow_declares_flow_signatures() -> None:
    import inspect

    for name in ('build_auth_url', 'fetch_access_token', 'apply_access_token_to_request', 'refresh_access_token'):
        declared = list(inspect.signature(getattr(AuthFlow, name)).parameters)
        implemented = list(inspect.signature(getattr(OAuth1Client, name)).parameters)
        assert declared == implemented

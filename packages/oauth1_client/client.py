"""OAuth 1.0/1.0a client flow.

Example:
    >>> client = OAuth1Client(config, state_store=session_store)
    >>> request_token = client.fetch_request_token()
    >>> url = client.build_auth_url(request_token)  # redirect the user here
    >>> # After the user returns to the callback URL:
    >>> client = OAuth1Client(config, state_store=session_store, incoming=MappingRequestReader(query=query))
    >>> access_token = client.handle_callback()
"""

import logging
import typing as t
from abc import ABC, abstractmethod

from oauth1_client.exceptions import AuthorizationDeniedError, ConfigurationError, StateMismatchError
from oauth1_client.models import FlowState, OAuth1Config, OAuthToken, Request
from oauth1_client.signature import HmacSha1Method, SignatureMethod
from oauth1_client.signer import RequestSigner
from oauth1_client.stores import MemoryStateStore, StateStore
from oauth1_client.transport import HttpxTransport, Transport
from oauth1_client.utils import compose_url

if t.TYPE_CHECKING:
    from oauth1_client.incoming import IncomingRequestReader

logger = logging.getLogger(__name__)

REQUEST_TOKEN_KEY = 'requestToken'
ACCESS_TOKEN_KEY = 'accessToken'
# Callback value for clients that cannot receive redirects (RFC 5849 section 2.1).
OUT_OF_BAND_CALLBACK = 'oob'


class AuthFlow(ABC):
    """Authorization flow capability shared by protocol clients.

    Callers pick the flow implementation for a provider up front instead of
    inspecting the client type at runtime.
    """

    @abstractmethod
    def build_auth_url(
        self,
        request_token: t.Optional[OAuthToken] = None,
        params: t.Optional[t.Mapping[str, t.Any]] = None,
    ) -> str:
        """Compose URL the user is redirected to for authorization."""

    @abstractmethod
    def fetch_access_token(
        self,
        oauth_token: t.Optional[str] = None,
        request_token: t.Optional[OAuthToken] = None,
        oauth_verifier: t.Optional[str] = None,
        params: t.Optional[t.Mapping[str, t.Any]] = None,
    ) -> OAuthToken:
        """Exchange the authorized request token for an access token."""

    @abstractmethod
    def apply_access_token_to_request(self, request: Request, access_token: OAuthToken) -> Request:
        """Return request carrying the access token."""

    @abstractmethod
    def refresh_access_token(self, token: OAuthToken) -> t.Optional[OAuthToken]:
        """Get new access token to replace an expired one."""


class OAuth1Client(AuthFlow):
    """Client for the OAuth 1.0/1.0a flow.

    The flow is request token, user authorization, then access token. Between
    the two legs the request token is kept in the state store, so the client
    may be re-created on callback as long as it shares the same store.
    """

    def __init__(
        self,
        config: OAuth1Config,
        signature_method: t.Optional[SignatureMethod] = None,
        transport: t.Optional[Transport] = None,
        state_store: t.Optional[StateStore] = None,
        incoming: t.Optional['IncomingRequestReader'] = None,
    ) -> None:
        """Initialize OAuth 1.0 client.

        Args:
            config: Client configuration.
            signature_method: Signature method, HMAC-SHA1 by default.
            transport: HTTP transport, ``HttpxTransport`` by default.
            state_store: Store for the tokens, scoped to the end-user session.
            incoming: Reader for the callback request params.
        """
        self.config = config
        self.signature_method = signature_method or HmacSha1Method()
        self.transport = transport or HttpxTransport()
        self.state_store = state_store if state_store is not None else MemoryStateStore()
        self.incoming = incoming
        self.signer = RequestSigner(
            consumer_key=config.consumer_key,
            consumer_secret=config.consumer_secret,
            signature_method=self.signature_method,
            authorization_header_methods=config.authorization_header_methods,
            realm=config.realm,
        )

        self._access_token: t.Optional[OAuthToken] = None
        if self.access_token is not None:
            self._state = FlowState.AUTHENTICATED
        elif self._get_state(REQUEST_TOKEN_KEY) is not None:
            self._state = FlowState.REQUEST_TOKEN_OBTAINED
        else:
            self._state = FlowState.UNAUTHENTICATED

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def access_token(self) -> t.Optional[OAuthToken]:
        """Current access token, restored from the state store when needed."""
        if self._access_token is None:
            token = self._get_state(ACCESS_TOKEN_KEY)
            if isinstance(token, OAuthToken):
                self._access_token = token
                self.signer.access_token = token
        return self._access_token

    @access_token.setter
    def access_token(self, token: t.Optional[OAuthToken]) -> None:
        self._access_token = token
        self.signer.access_token = token
        if token is None:
            self._remove_state(ACCESS_TOKEN_KEY)
        else:
            self._set_state(ACCESS_TOKEN_KEY, token)

    def fetch_request_token(self, params: t.Optional[t.Mapping[str, t.Any]] = None) -> OAuthToken:
        """Fetch the OAuth request token.

        Any current access token is dropped first.

        Args:
            params: Additional request params.

        Returns:
            Request token, also kept in the state store.
        """
        self.access_token = None

        request_params: t.Dict[str, t.Any] = {'oauth_consumer_key': self.config.consumer_key}
        request_params['oauth_callback'] = self.config.callback_url or OUT_OF_BAND_CALLBACK
        if self.config.scope:
            request_params['scope'] = self.config.scope
        request_params.update(params or {})

        request = self.transport.build(
            self.config.request_token_method, compose_url(self.config.request_token_url, request_params)
        )
        request = self.sign_request(request)

        logger.debug('Fetching request token from %s', self.config.request_token_url)
        try:
            response = self.transport.send(request)
            token = OAuthToken.from_response(response)
        except Exception:
            self._state = FlowState.FAILED
            raise

        self._set_state(REQUEST_TOKEN_KEY, token)
        self._state = FlowState.REQUEST_TOKEN_OBTAINED
        return token

    def build_auth_url(
        self,
        request_token: t.Optional[OAuthToken] = None,
        params: t.Optional[t.Mapping[str, t.Any]] = None,
    ) -> str:
        """Compose user authorization URL.

        Args:
            request_token: Request token, taken from the state store if not given.
            params: Additional URL params.

        Returns:
            Authorization URL.

        Raises:
            ConfigurationError: If no request token is available.
        """
        if request_token is None:
            request_token = self._get_state(REQUEST_TOKEN_KEY)
            if request_token is None:
                raise ConfigurationError('Request token is required to build authorize URL!')

        url_params = dict(params or {})
        url_params['oauth_token'] = request_token.token
        return compose_url(self.config.authorize_url, url_params)

    def fetch_access_token(
        self,
        oauth_token: t.Optional[str] = None,
        request_token: t.Optional[OAuthToken] = None,
        oauth_verifier: t.Optional[str] = None,
        params: t.Optional[t.Mapping[str, t.Any]] = None,
    ) -> OAuthToken:
        """Exchange the authorized request token for an access token.

        Args:
            oauth_token: ``oauth_token`` the provider redirected back with. Read from
                the incoming request if not given.
            request_token: Request token, taken from the state store if not given.
            oauth_verifier: ``oauth_verifier`` from the callback. Read from the
                incoming request if not given.
            params: Additional request params.

        Returns:
            Access token, also set as the client's current access token.

        Raises:
            ConfigurationError: If no request token is available.
            StateMismatchError: If ``oauth_token`` does not match the request token.
        """
        if oauth_token is None:
            oauth_token = self._incoming_param('oauth_token')

        if request_token is None:
            request_token = self._get_state(REQUEST_TOKEN_KEY)
            if request_token is None:
                raise ConfigurationError('Request token is required to fetch access token!')

        if oauth_token != request_token.token:
            logger.warning('OAuth token returned to callback does not match the request token')
            self._state = FlowState.FAILED
            raise StateMismatchError

        self._remove_state(REQUEST_TOKEN_KEY)

        request_params: t.Dict[str, t.Any] = {
            'oauth_consumer_key': self.config.consumer_key,
            'oauth_token': request_token.token,
        }
        if oauth_verifier is None:
            oauth_verifier = self._incoming_param('oauth_verifier')
        if oauth_verifier:
            request_params['oauth_verifier'] = oauth_verifier
        request_params.update(params or {})

        request = self.transport.build(
            self.config.access_token_method, compose_url(self.config.access_token_url, request_params)
        )
        request = self.sign_request(request, request_token)

        logger.debug('Fetching access token from %s', self.config.access_token_url)
        try:
            response = self.transport.send(request)
            token = OAuthToken.from_response(response)
        except Exception:
            self._state = FlowState.FAILED
            raise

        self.access_token = token
        self._state = FlowState.AUTHENTICATED
        return token

    def handle_callback(self) -> OAuthToken:
        """Complete the flow from the incoming callback request.

        Returns:
            Access token.

        Raises:
            AuthorizationDeniedError: If the user denied access at the provider.
            ConfigurationError: If there is no incoming request reader or request token.
            StateMismatchError: If the callback ``oauth_token`` does not match.
        """
        if self.incoming is None:
            raise ConfigurationError('Incoming request reader is required to handle callback!')

        if self.incoming.param('denied') is not None:
            logger.warning('User denied authorization')
            self._remove_state(REQUEST_TOKEN_KEY)
            self._state = FlowState.CANCELLED
            raise AuthorizationDeniedError('User denied authorization.')

        return self.fetch_access_token()

    def sign_request(self, request: Request, token: t.Optional[OAuthToken] = None) -> Request:
        """Sign request, using the current access token secret if no token is given."""
        return self.signer.sign(request, token if token is not None else self.access_token)

    def apply_access_token_to_request(self, request: Request, access_token: OAuthToken) -> Request:
        """Add ``oauth_consumer_key`` and ``oauth_token`` as plain request params."""
        return request.with_params(
            {
                'oauth_consumer_key': self.config.consumer_key,
                'oauth_token': access_token.token,
            }
        )

    def api(
        self,
        method: str,
        url: str,
        params: t.Optional[t.Mapping[str, t.Any]] = None,
        headers: t.Optional[t.Mapping[str, str]] = None,
    ) -> t.Dict[str, t.Any]:
        """Perform a signed API call on behalf of the user.

        GET params are sent in the query string, other methods send them as a form body.

        Args:
            method: HTTP method.
            url: API URL.
            params: Request params.
            headers: Extra headers.

        Returns:
            Parsed response body.

        Raises:
            ConfigurationError: If there is no access token.
        """
        access_token = self.access_token
        if access_token is None:
            raise ConfigurationError('Access token is required to perform API call!')

        method = method.upper()
        request_params = {'oauth_consumer_key': self.config.consumer_key, 'oauth_token': access_token.token}
        if method == 'GET':
            request_params.update(params or {})
            request = self.transport.build(method, compose_url(url, request_params), headers=headers)
        else:
            body = {key: str(value) for key, value in (params or {}).items()}
            request = self.transport.build(method, compose_url(url, request_params), headers=headers, body_params=body)

        return self.transport.send(self.sign_request(request, access_token))

    def refresh_access_token(self, token: OAuthToken) -> None:
        """OAuth 1.0 defines no token refresh, so there is never a new token."""
        return None

    @property
    def state_key_prefix(self) -> str:
        if self.config.state_key_prefix is not None:
            return self.config.state_key_prefix
        return f'{type(self).__name__}_{self.config.consumer_key}_'

    def _get_state(self, key: str) -> t.Optional[t.Any]:
        return self.state_store.get(self.state_key_prefix + key)

    def _set_state(self, key: str, value: t.Any) -> None:
        self.state_store.set(self.state_key_prefix + key, value)

    def _remove_state(self, key: str) -> None:
        self.state_store.remove(self.state_key_prefix + key)

    def _incoming_param(self, name: str) -> t.Optional[str]:
        if self.incoming is None:
            return None
        return self.incoming.param(name)

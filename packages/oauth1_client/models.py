"""Data models for the OAuth 1.0 client."""

import enum
import typing as t
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType

from oauth1_client.exceptions import ConfigurationError, OAuthTokenError
from oauth1_client.utils import build_query, parse_query, split_url

DEFAULT_AUTHORIZATION_HEADER_METHODS: t.FrozenSet[str] = frozenset({'POST'})


class FlowState(enum.Enum):
    """Stage of a single authorization attempt."""

    UNAUTHENTICATED = 'unauthenticated'
    REQUEST_TOKEN_OBTAINED = 'request_token_obtained'
    AUTHENTICATED = 'authenticated'
    CANCELLED = 'cancelled'
    FAILED = 'failed'


@dataclass(frozen=True)
class OAuthToken:
    """Request or access token issued by the OAuth server.

    Attributes:
        token: Token identifier (``oauth_token``).
        token_secret: Secret used only as signing key material (``oauth_token_secret``).
        params: Any other params the server returned with the token.
        created_at: When the token was received.
    """

    token: str
    token_secret: str = ''
    params: t.Mapping[str, str] = field(default_factory=dict, hash=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'params', MappingProxyType(dict(self.params)))

    @classmethod
    def from_response(cls, response: t.Mapping[str, t.Any]) -> 'OAuthToken':
        """Create token from a parsed token endpoint response.

        Args:
            response: Flat key-value map, usually a parsed ``application/x-www-form-urlencoded`` body.

        Returns:
            Token with ``oauth_token`` and ``oauth_token_secret`` extracted.

        Raises:
            OAuthTokenError: If the response does not contain ``oauth_token``.
        """
        params = {key: str(value) for key, value in response.items()}
        token = params.pop('oauth_token', None)
        if not token:
            raise OAuthTokenError(f'Token response does not contain "oauth_token": {sorted(params)}')
        token_secret = params.pop('oauth_token_secret', '')
        return cls(token=token, token_secret=token_secret, params=params)

    def get_param(self, name: str, default: t.Optional[str] = None) -> t.Optional[str]:
        """Get an extra param returned by the server."""
        return self.params.get(name, default)

    @property
    def callback_confirmed(self) -> bool:
        """Whether the server confirmed the callback URL (OAuth 1.0a)."""
        return self.params.get('oauth_callback_confirmed') == 'true'

    def to_dict(self) -> t.Dict[str, str]:
        """Convert token back to the flat response form, e.g. for a JSON session store."""
        data = dict(self.params)
        data['oauth_token'] = self.token
        data['oauth_token_secret'] = self.token_secret
        return data

    def __reduce__(self) -> t.Tuple[t.Any, ...]:
        # MappingProxyType cannot be pickled.
        return self.__class__, (self.token, self.token_secret, dict(self.params), self.created_at)

    def __repr__(self) -> str:
        return f'OAuthToken(token={self.token!r}, params={dict(self.params)!r})'


@dataclass(frozen=True)
class Request:
    """Immutable outgoing HTTP request.

    Every ``with_*`` method returns a new instance and leaves this one untouched.
    """

    method: str
    url: str
    headers: t.Mapping[str, str] = field(default_factory=dict, hash=False)
    body_params: t.Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, 'method', self.method.upper())
        object.__setattr__(self, 'headers', MappingProxyType(dict(self.headers)))
        object.__setattr__(self, 'body_params', MappingProxyType(dict(self.body_params)))

    @property
    def query(self) -> str:
        return split_url(self.url)[1]

    @property
    def query_params(self) -> t.Dict[str, str]:
        return parse_query(self.query)

    @property
    def params(self) -> t.Dict[str, str]:
        """Body params overlaid by query params."""
        params = dict(self.body_params)
        params.update(self.query_params)
        return params

    def get_header(self, name: str) -> t.Optional[str]:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    def has_header(self, name: str) -> bool:
        return self.get_header(name) is not None

    def with_header(self, name: str, value: str) -> 'Request':
        lowered = name.lower()
        headers = {key: val for key, val in self.headers.items() if key.lower() != lowered}
        headers[name] = value
        return Request(self.method, self.url, headers, self.body_params)

    def with_url(self, url: str) -> 'Request':
        return Request(self.method, url, self.headers, self.body_params)

    def with_query(self, query: str) -> 'Request':
        base_url = split_url(self.url)[0]
        return self.with_url(f'{base_url}?{query}' if query else base_url)

    def with_params(self, params: t.Mapping[str, t.Any]) -> 'Request':
        """Add params to the query for GET requests, to the form body otherwise."""
        if self.method == 'GET':
            query_params = self.query_params
            query_params.update({key: str(value) for key, value in params.items()})
            return self.with_query(build_query(query_params))

        body_params = dict(self.body_params)
        body_params.update({key: str(value) for key, value in params.items()})
        return Request(self.method, self.url, self.headers, body_params)


@dataclass(frozen=True)
class OAuth1Config:
    """Immutable OAuth 1.0 client configuration.

    Attributes:
        consumer_key: Consumer key issued by the server.
        consumer_secret: Consumer secret issued by the server.
        request_token_url: Request token endpoint.
        authorize_url: User authorization endpoint.
        access_token_url: Access token endpoint.
        request_token_method: HTTP method for the request token call.
        access_token_method: HTTP method for the access token call.
        callback_url: Sent as ``oauth_callback`` with the request token call, ``oob`` when not set.
        scope: Sent as ``scope`` with the request token call when set.
        authorization_header_methods: Methods which carry the signature in the
            ``Authorization`` header. ``None`` means all methods.
        realm: Optional realm for the ``Authorization`` header.
        state_key_prefix: Namespace for keys in the state store.
    """

    consumer_key: str
    consumer_secret: str
    request_token_url: str
    authorize_url: str
    access_token_url: str
    request_token_method: str = 'GET'
    access_token_method: str = 'GET'
    callback_url: t.Optional[str] = None
    scope: t.Optional[str] = None
    authorization_header_methods: t.Optional[t.FrozenSet[str]] = DEFAULT_AUTHORIZATION_HEADER_METHODS
    realm: t.Optional[str] = None
    state_key_prefix: t.Optional[str] = None

    def __post_init__(self) -> None:
        for name in ('consumer_key', 'request_token_url', 'authorize_url', 'access_token_url'):
            if not getattr(self, name):
                raise ConfigurationError(f'OAuth1Config.{name} must not be empty.')

        object.__setattr__(self, 'request_token_method', self.request_token_method.upper())
        object.__setattr__(self, 'access_token_method', self.access_token_method.upper())
        if self.authorization_header_methods is not None:
            methods = frozenset(method.upper() for method in self.authorization_header_methods)
            object.__setattr__(self, 'authorization_header_methods', methods)

    def __repr__(self) -> str:
        return (
            f'OAuth1Config(consumer_key={self.consumer_key!r}, request_token_url={self.request_token_url!r}, '
            f'authorize_url={self.authorize_url!r}, access_token_url={self.access_token_url!r})'
        )

"""OAuth 1.0 request signing (RFC 5849 section 3)."""

import hashlib
import logging
import secrets
import time
import typing as t

from oauth1_client.models import DEFAULT_AUTHORIZATION_HEADER_METHODS, OAuthToken, Request
from oauth1_client.utils import build_query, parse_query, percent_encode, split_url

if t.TYPE_CHECKING:
    from oauth1_client.signature import SignatureMethod

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = '1.0'


class RequestSigner:
    """Signs outgoing requests with OAuth 1.0 protocol params.

    The signer keeps a reference to the current access token, which is used for
    the signature key whenever ``sign`` is called without an explicit token.
    """

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        signature_method: 'SignatureMethod',
        authorization_header_methods: t.Optional[t.Iterable[str]] = DEFAULT_AUTHORIZATION_HEADER_METHODS,
        realm: t.Optional[str] = None,
    ) -> None:
        """Initialize signer.

        Args:
            consumer_key: Consumer key.
            consumer_secret: Consumer secret, first half of the signature key.
            signature_method: Algorithm used to sign requests.
            authorization_header_methods: HTTP methods which carry protocol params in the
                ``Authorization`` header. ``None`` means all methods.
            realm: Optional realm for the ``Authorization`` header.
        """
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.signature_method = signature_method
        self.authorization_header_methods = (
            None
            if authorization_header_methods is None
            else frozenset(method.upper() for method in authorization_header_methods)
        )
        self.realm = realm
        self.access_token: t.Optional[OAuthToken] = None

    def generate_nonce(self) -> str:
        """Generate a value unique for every request."""
        return hashlib.md5(f'{time.time_ns()}{secrets.randbits(64)}'.encode(), usedforsecurity=False).hexdigest()

    def generate_timestamp(self) -> int:
        return int(time.time())

    def generate_common_params(self) -> t.Dict[str, str]:
        """Generate protocol params which must be fresh for every request."""
        return {
            'oauth_version': PROTOCOL_VERSION,
            'oauth_nonce': self.generate_nonce(),
            'oauth_timestamp': str(self.generate_timestamp()),
        }

    def uses_authorization_header(self, method: str) -> bool:
        if self.authorization_header_methods is None:
            return True
        return method.upper() in self.authorization_header_methods

    def sign(self, request: Request, token: t.Optional[OAuthToken] = None) -> Request:
        """Sign request.

        Already signed requests (carrying ``oauth_signature_method`` or an
        ``Authorization`` header) are returned unchanged.

        Args:
            request: Request to sign.
            token: Token whose secret completes the signature key. Defaults to
                the current access token.

        Returns:
            New signed request. The given request is not modified.
        """
        if 'oauth_signature_method' in request.params or request.has_header('Authorization'):
            return request

        query_params = request.query_params
        params = self.generate_common_params()
        if query_params:
            params.update(query_params)

        params['oauth_signature_method'] = self.signature_method.name

        # Form body params take part in the signature but stay in the body.
        base_params = dict(request.body_params)
        base_params.update(params)
        base_string = self.compose_signature_base_string(request.method, request.url, base_params)
        key = self.compose_signature_key(token)
        params['oauth_signature'] = self.signature_method.generate(base_string, key)

        if self.uses_authorization_header(request.method):
            request = request.with_header('Authorization', self.compose_authorization_header(params, self.realm))
            params = {name: value for name, value in params.items() if not name.startswith('oauth')}

        logger.debug('Signed %s %s with %s', request.method, split_url(request.url)[0], self.signature_method.name)
        return request.with_query(build_query(params))

    @staticmethod
    def compose_signature_base_string(method: str, url: str, params: t.Mapping[str, t.Any]) -> str:
        """Compose signature base string (RFC 5849 section 3.4.1).

        Args:
            method: HTTP method.
            url: Request URL. Params from its query string are merged under ``params``.
            params: Request params.

        Returns:
            Signature base string.
        """
        base_url, query = split_url(url)
        merged: t.Dict[str, t.Any] = parse_query(query) if query else {}
        merged.update(params)
        merged.pop('oauth_signature', None)

        # Lexicographical byte value ordering; sorted() is stable.
        ordered = dict(sorted(merged.items(), key=lambda item: str(item[0]).encode('utf-8')))
        parts = [method.upper(), base_url, build_query(ordered)]
        return '&'.join(percent_encode(part) for part in parts)

    def compose_signature_key(self, token: t.Optional[OAuthToken] = None) -> str:
        """Compose signature key from the consumer secret and the token secret.

        Args:
            token: Token to take the secret from. Defaults to the current access token.

        Returns:
            Signature key.
        """
        if token is None:
            token = self.access_token
        token_secret = token.token_secret if token is not None else ''
        return f'{percent_encode(self.consumer_secret or "")}&{percent_encode(token_secret)}'

    @staticmethod
    def compose_authorization_header(params: t.Mapping[str, t.Any], realm: t.Optional[str] = None) -> str:
        """Compose ``Authorization`` header value from the protocol params.

        Only params whose names start with ``oauth`` are included.
        """
        header_params = []
        if realm:
            header_params.append(f'realm="{percent_encode(realm)}"')
        for name, value in params.items():
            if name.startswith('oauth'):
                header_params.append(f'{percent_encode(name)}="{percent_encode(value)}"')

        if not header_params:
            return 'OAuth'
        return 'OAuth ' + ', '.join(header_params)

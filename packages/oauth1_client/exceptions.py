"""OAuth 1.0 client exceptions."""

import typing as t

if t.TYPE_CHECKING:
    import httpx


class OAuth1Error(Exception):
    """Base exception for all OAuth 1.0 client errors."""


class ConfigurationError(OAuth1Error):
    """Raised when the client is misconfigured or a required token is missing.

    Not retryable: the authorization flow has to be restarted from the request token step.
    """


class StateMismatchError(OAuth1Error):
    """Raised when the callback ``oauth_token`` does not match the stored request token."""

    status_code = 400

    def __init__(self, message: str = 'Invalid auth state parameter.') -> None:
        super().__init__(message)


class SignatureError(OAuth1Error):
    """Raised when key material is malformed for the chosen signature method."""


class OAuthTokenError(OAuth1Error):
    """Raised when a token endpoint response does not contain a token."""


class AuthorizationDeniedError(OAuth1Error):
    """Raised when the user denied authorization at the provider."""


class InvalidResponseError(OAuth1Error):
    """Raised by the HTTP transport when the server answers with a non-2xx status."""

    def __init__(self, response: 'httpx.Response', message: t.Optional[str] = None) -> None:
        self.response = response
        super().__init__(message or f'Request failed with code: {response.status_code}, message: {response.text}')

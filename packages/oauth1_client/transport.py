"""HTTP transport used by the OAuth 1.0 client."""

import logging
import typing as t
from abc import ABC, abstractmethod

import httpx

from oauth1_client.exceptions import InvalidResponseError
from oauth1_client.models import Request
from oauth1_client.utils import parse_query, split_url

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Creates and sends HTTP requests on behalf of the client."""

    def build(
        self,
        method: str,
        url: str,
        headers: t.Optional[t.Mapping[str, str]] = None,
        body_params: t.Optional[t.Mapping[str, str]] = None,
    ) -> Request:
        """Create a request value.

        Args:
            method: HTTP method.
            url: Request URL, may include a query string.
            headers: Request headers.
            body_params: Form body params.

        Returns:
            New request.
        """
        return Request(method=method, url=url, headers=headers or {}, body_params=body_params or {})

    @abstractmethod
    def send(self, request: Request) -> t.Dict[str, t.Any]:
        """Send request and return the parsed response body.

        Args:
            request: Request to send.

        Returns:
            Response body parsed into a flat key-value map.
        """


class HttpxTransport(Transport):
    """Transport backed by a synchronous ``httpx.Client``."""

    def __init__(self, client: t.Optional[httpx.Client] = None, timeout: float = 10.0) -> None:
        """Initialize transport.

        Args:
            client: HTTP client to use. A new one is created and owned by the transport if not given.
            timeout: Timeout for the owned client in seconds.
        """
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def send(self, request: Request) -> t.Dict[str, t.Any]:
        logger.debug('Sending %s %s', request.method, split_url(request.url)[0])
        response = self._client.request(
            request.method,
            request.url,
            headers=dict(request.headers),
            data=dict(request.body_params) or None,
        )

        if not response.is_success:
            logger.debug('Request to %s failed with code %s', split_url(request.url)[0], response.status_code)
            raise InvalidResponseError(response)

        return self.parse_response(response)

    @staticmethod
    def parse_response(response: httpx.Response) -> t.Dict[str, t.Any]:
        """Parse response body by its content type.

        JSON bodies are decoded as JSON; anything else is treated as
        ``application/x-www-form-urlencoded``.

        Args:
            response: HTTP response.

        Returns:
            Parsed body.

        Raises:
            InvalidResponseError: If a JSON body is not an object.
        """
        content_type = response.headers.get('Content-Type', '').lower()
        text = response.text.strip()
        if 'json' in content_type or text.startswith('{'):
            try:
                data = response.json()
            except ValueError as e:
                raise InvalidResponseError(response, f'Unable to decode JSON response: {e}') from e
            if not isinstance(data, dict):
                raise InvalidResponseError(response, 'JSON response is not an object.')
            return data

        return parse_query(text)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> 'HttpxTransport':
        return self

    def __exit__(self, *args: t.Any) -> None:
        self.close()

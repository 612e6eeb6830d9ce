"""Access to the incoming callback request."""

import typing as t
from abc import ABC, abstractmethod

from oauth1_client.utils import parse_query, split_url


class IncomingRequestReader(ABC):
    """Reads params of the request the provider redirected the user back with."""

    @abstractmethod
    def query_param(self, name: str) -> t.Optional[str]:
        """Get query string param, None if missing."""

    @abstractmethod
    def body_param(self, name: str) -> t.Optional[str]:
        """Get form body param, None if missing."""

    def param(self, name: str) -> t.Optional[str]:
        """Get param from the query string, falling back to the body."""
        value = self.query_param(name)
        if value is None:
            value = self.body_param(name)
        return value


class MappingRequestReader(IncomingRequestReader):
    """Reader over plain mappings, e.g. a web framework's query and form dicts.

    Example:
        >>> reader = MappingRequestReader(query=request.args, body=request.form)
    """

    def __init__(
        self,
        query: t.Optional[t.Mapping[str, str]] = None,
        body: t.Optional[t.Mapping[str, str]] = None,
    ) -> None:
        self._query = dict(query or {})
        self._body = dict(body or {})

    @classmethod
    def from_url(cls, url: str) -> 'MappingRequestReader':
        """Create reader from the full callback URL."""
        return cls(query=parse_query(split_url(url)[1]))

    def query_param(self, name: str) -> t.Optional[str]:
        return self._query.get(name)

    def body_param(self, name: str) -> t.Optional[str]:
        return self._body.get(name)

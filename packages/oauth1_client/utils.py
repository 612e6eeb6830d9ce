"""URL and parameter helpers for OAuth 1.0 (RFC 5849 section 3.6 encoding)."""

import typing as t
from urllib.parse import parse_qsl, quote, urlsplit, urlunsplit

# RFC 3986 unreserved characters, the only ones left as-is.
_UNRESERVED = '-._~'


def percent_encode(value: t.Any) -> str:
    """Percent-encode a value as required by RFC 5849.

    Everything except ``A-Z a-z 0-9 - . _ ~`` is encoded, and a space becomes
    ``%20`` (never ``+``).

    Args:
        value: Value to encode. Non-string values are converted with ``str()``.

    Returns:
        Encoded string.
    """
    if isinstance(value, bytes):
        value = value.decode('utf-8')
    return quote(str(value), safe=_UNRESERVED)


def build_query(params: t.Mapping[str, t.Any]) -> str:
    """Serialize params as ``key=value`` pairs joined by ``&`` using RFC 3986 encoding.

    Pairs are emitted in the mapping's iteration order.
    """
    return '&'.join(f'{percent_encode(key)}={percent_encode(value)}' for key, value in params.items())


def parse_query(query: str) -> t.Dict[str, str]:
    """Parse a query string or form body into a flat dict.

    Blank values are kept. For repeated keys the last value wins.
    """
    return dict(parse_qsl(query, keep_blank_values=True))


def split_url(url: str) -> t.Tuple[str, str]:
    """Split URL into the part before the query and the query string itself.

    The fragment, if any, is dropped.
    """
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, '', '')), parts.query


def compose_url(url: str, params: t.Optional[t.Mapping[str, t.Any]] = None) -> str:
    """Append params to URL, respecting a query string that is already present.

    Args:
        url: Base URL, may already contain a query.
        params: Params to append.

    Returns:
        Composed URL.
    """
    if not params:
        return url
    separator = '&' if '?' in url else '?'
    return f'{url}{separator}{build_query(params)}'

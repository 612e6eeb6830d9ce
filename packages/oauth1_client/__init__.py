"""OAuth 1.0/1.0a client implementation."""

from oauth1_client.client import AuthFlow, OAuth1Client
from oauth1_client.exceptions import (
    AuthorizationDeniedError,
    ConfigurationError,
    InvalidResponseError,
    OAuth1Error,
    OAuthTokenError,
    SignatureError,
    StateMismatchError,
)
from oauth1_client.incoming import IncomingRequestReader, MappingRequestReader
from oauth1_client.models import FlowState, OAuth1Config, OAuthToken, Request
from oauth1_client.signature import HmacSha1Method, HmacSha256Method, PlaintextMethod, RsaSha1Method, SignatureMethod
from oauth1_client.signer import RequestSigner
from oauth1_client.stores import MemoryStateStore, StateStore
from oauth1_client.transport import HttpxTransport, Transport

__all__ = [
    'AuthFlow',
    'AuthorizationDeniedError',
    'ConfigurationError',
    'FlowState',
    'HmacSha1Method',
    'HmacSha256Method',
    'HttpxTransport',
    'IncomingRequestReader',
    'InvalidResponseError',
    'MappingRequestReader',
    'MemoryStateStore',
    'OAuth1Client',
    'OAuth1Config',
    'OAuth1Error',
    'OAuthToken',
    'OAuthTokenError',
    'PlaintextMethod',
    'Request',
    'RequestSigner',
    'RsaSha1Method',
    'SignatureError',
    'SignatureMethod',
    'StateMismatchError',
    'StateStore',
    'Transport',
]

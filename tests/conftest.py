import typing as t

import pytest
from oauth1_client import OAuth1Config, Request, Transport


class RecordingTransport(Transport):
    """Transport returning canned responses and keeping every sent request."""

    def __init__(self, responses: t.Optional[t.List[t.Dict[str, t.Any]]] = None) -> None:
        self.responses = list(responses or [])
        self.sent: t.List[Request] = []

    def send(self, request: Request) -> t.Dict[str, t.Any]:
        self.sent.append(request)
        return self.responses.pop(0)


@pytest.fixture
def config() -> OAuth1Config:
    return OAuth1Config(
        consumer_key='test_consumer_key',
        consumer_secret='test_consumer_secret',
        request_token_url='https://provider.example.com/oauth/request_token',
        authorize_url='https://provider.example.com/oauth/authorize',
        access_token_url='https://provider.example.com/oauth/access_token',
        callback_url='https://consumer.example.com/callback',
    )


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()

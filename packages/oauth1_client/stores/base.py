"""Abstract base class for OAuth state stores."""

import typing as t
from abc import ABC, abstractmethod


class StateStore(ABC):
    """Abstract store for values that must survive between the two legs of the flow.

    The client keeps the in-flight request token and the current access token
    here. A store is expected to be scoped to one end-user session, e.g. backed
    by the web framework's session.

    Note:
        No locking is done by the client. Concurrent authorization attempts
        sharing the same store namespace must be serialized by the caller.
    """

    @abstractmethod
    def get(self, key: str) -> t.Optional[t.Any]:
        """Retrieve value by key.

        Args:
            key: State key.

        Returns:
            Stored value if found, None otherwise.
        """

    @abstractmethod
    def set(self, key: str, value: t.Any) -> None:
        """Save value under key.

        Args:
            key: State key.
            value: Value to store.
        """

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete value by key. Missing keys are ignored.

        Args:
            key: State key.
        """

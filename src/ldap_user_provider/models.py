"""User records returned by the provider."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional

from .exceptions import UserNotFoundError

logger = logging.getLogger("ldap_user_provider.models")

__all__ = ["User", "UserCollection"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class User:
    """A user as seen by the XMPP server."""

    username: str
    name: Optional[str]
    email: Optional[str]
    creation_date: datetime = field(default_factory=_now)
    modification_date: datetime = field(default_factory=_now)


class UserCollection(Sequence):
    """Search results that load each :class:`User` on access.

    Searching only returns usernames; the full record (display name, dates)
    costs one LDAP read per user, so it is deferred until the item is used.

    Iterating skips users that vanished from the directory after the search;
    ``len()`` counts the usernames found, so it is an upper bound.  Indexing a
    vanished user raises :class:`UserNotFoundError`.
    """

    def __init__(self, usernames: List[str], loader: Callable[[str], User]) -> None:
        self._usernames = list(usernames)
        self._loader = loader

    @property
    def usernames(self) -> List[str]:
        return list(self._usernames)

    def __len__(self) -> int:
        return len(self._usernames)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return UserCollection(self._usernames[index], self._loader)
        return self._loader(self._usernames[index])

    def __iter__(self) -> Iterator[User]:
        for username in self._usernames:
            try:
                yield self._loader(username)
            except UserNotFoundError as exc:
                logger.debug("Skipping %s: %s", username, exc)

    def __repr__(self) -> str:  # pragma: no cover – cosmetic
        return f"UserCollection({self._usernames!r})"

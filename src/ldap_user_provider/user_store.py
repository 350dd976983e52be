"""Read-only user store backing the pass-through provider operations."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .exceptions import UnsupportedOperationError
from .filter_builder import render_scope_filter
from .ldap_client import LdapManager
from .models import User, UserCollection

logger = logging.getLogger("ldap_user_provider.store")

__all__ = ["LdapUserStore"]


class LdapUserStore:
    """Lists and counts directory users; refuses every modification.

    *loader* turns a username into a :class:`User`; the provider sets it to
    its own ``load_user`` so listed users get templated display names.
    """

    def __init__(self, manager: LdapManager, loader: Optional[Callable[[str], User]] = None) -> None:
        self._manager = manager
        self.loader = loader

    def _all_usernames(self, start_index: int = -1, num_results: int = -1) -> List[str]:
        m = self._manager
        return m.retrieve_list(
            m.username_attr,
            render_scope_filter(m.search_filter, "*"),
            start_index,
            num_results,
            m.username_suffix,
        )

    def get_user_count(self) -> int:
        return len(self._all_usernames())

    def get_usernames(self) -> List[str]:
        return self._all_usernames()

    def get_users(self, start_index: int = -1, num_results: int = -1) -> UserCollection:
        if self.loader is None:
            raise UnsupportedOperationError("No user loader configured")
        return UserCollection(self._all_usernames(start_index, num_results), self.loader)

    # Read-only ---------------------------------------------------------

    def _read_only(self, operation: str):
        logger.debug("Refusing %s on read-only LDAP store", operation)
        raise UnsupportedOperationError(f"{operation} is not supported by the LDAP user store")

    def create_user(self, username: str, password: str, name: str | None, email: str | None) -> User:
        self._read_only("create_user")

    def delete_user(self, username: str) -> None:
        self._read_only("delete_user")

    def set_name(self, username: str, name: str) -> None:
        self._read_only("set_name")

    def set_email(self, username: str, email: str) -> None:
        self._read_only("set_email")

    def set_creation_date(self, username: str, creation_date: datetime) -> None:
        self._read_only("set_creation_date")

    def set_modification_date(self, username: str, modification_date: datetime) -> None:
        self._read_only("set_modification_date")

    def is_read_only(self) -> bool:
        return True

    def is_name_required(self) -> bool:
        return False

    def is_email_required(self) -> bool:
        return False

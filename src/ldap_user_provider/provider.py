"""LDAP user provider for directories without a full name attribute.

:class:`LdapUserProvider` wraps a plain LDAP user store and changes three
things about it:

* display names are built from ``display_name_template`` (e.g.
  ``"{givenName} {sn}"``) instead of a single name attribute;
* searching the ``Name`` field searches every field listed in
  ``search_name_fields`` instead;
* with ``separate_search_terms`` a query such as ``"jo sm"`` matches users
  whose fields match ``jo*`` *and* ``sm*``.

Every other user operation is forwarded to the delegate unchanged.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import AbstractSet, List, Optional, Protocol, Sequence

from .config import Config
from .core.constants import LDAP_CREATE_TIMESTAMP_ATTR, LDAP_MODIFY_TIMESTAMP_ATTR
from .display_name import construct_display_name
from .exceptions import UserNotFoundError
from .filter_builder import build_search_filter
from .jid import XmppDomain, escape_node, unescape_node
from .ldap_client import LdapManager
from .ldap_date import parse_ldap_date
from .models import User, UserCollection
from .settings import ProviderSettings
from .user_store import LdapUserStore

logger = logging.getLogger("ldap_user_provider.provider")

__all__ = ["LdapUserProvider"]


class LocalServer(Protocol):
    def is_local(self, identifier: str) -> bool: ...


class LdapUserProvider:
    """User provider with templated display names and expanded name search.

    Parameters
    ----------
    manager
        Directory access (:class:`LdapManager` or anything with the same
        methods).
    delegate
        Store receiving the operations this provider does not change.
    server
        Decides whether ``user@domain`` identifiers belong to this server.
    display_name_template, separate_search_terms, search_fields, search_name_fields
        Raw configuration values, see :class:`ProviderSettings`.
    """

    def __init__(
        self,
        manager: LdapManager,
        delegate,
        server: LocalServer,
        *,
        display_name_template: Optional[str] = None,
        separate_search_terms: bool = False,
        search_fields: Optional[str] = None,
        search_name_fields: Optional[str] = None,
    ) -> None:
        self._manager = manager
        self._delegate = delegate
        self._server = server
        self._lock = threading.Lock()
        self._settings = ProviderSettings.build(
            username_attr=manager.username_attr,
            name_attr=manager.name_attr,
            email_attr=manager.email_attr,
            display_name_template=display_name_template,
            separate_search_terms=separate_search_terms,
            search_fields=search_fields,
            search_name_fields=search_name_fields,
        )

    @classmethod
    def from_config(cls, cfg: Config) -> "LdapUserProvider":
        """Wire a provider, its LDAP manager and read-only delegate."""
        manager = LdapManager.from_config(cfg)
        store = LdapUserStore(manager)
        provider = cls(
            manager,
            store,
            XmppDomain(cfg.xmpp_domain),
            display_name_template=cfg.display_name_template,
            separate_search_terms=cfg.separate_search_terms,
            search_fields=cfg.search_fields,
            search_name_fields=cfg.search_name_fields,
        )
        store.loader = provider.load_user
        return provider

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------
    @property
    def settings(self) -> ProviderSettings:
        return self._settings

    @property
    def display_name_template(self) -> Optional[str]:
        return self._settings.display_name_template

    def set_display_name_template(self, template: Optional[str]) -> None:
        """Replace the display name template.

        The template and the attribute list derived from it are published
        together, so a concurrent load never sees one without the other.
        """
        with self._lock:
            self._settings = self._settings.with_display_name_template(template)
        logger.debug("Display name template set to %r, loading %s", template, self._settings.attributes_to_load)

    def get_search_fields(self) -> List[str]:
        return list(self._settings.search_fields)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def load_user(self, username: str) -> User:
        """Load *username* (optionally ``node@domain``) from LDAP.

        Raises
        ------
        UserNotFoundError
            If the identifier belongs to another server or anything goes
            wrong reading the directory.
        """
        if "@" in username:
            if not self._server.is_local(username):
                raise UserNotFoundError(f"Cannot load user of remote server: {username}")
            username = username[: username.rindex("@")]
        username = unescape_node(username)

        settings = self._settings
        manager = self._manager
        ctx = None
        try:
            user_dn = manager.find_user_dn(username)
            ctx = manager.get_context(manager.users_base_dn(user_dn))
            attrs = manager.get_attributes(ctx, user_dn, settings.attributes_to_load)

            name = construct_display_name(settings.display_name_template, attrs, settings.name_attr)
            logger.debug("Using %s as display name for user %s", name, username)

            email = attrs.get(settings.email_attr)
            creation_date = _timestamp(attrs.get(LDAP_CREATE_TIMESTAMP_ATTR))
            modification_date = _timestamp(attrs.get(LDAP_MODIFY_TIMESTAMP_ATTR))

            return User(escape_node(username), name, email, creation_date, modification_date)
        except Exception as exc:
            raise UserNotFoundError(f"Failed to load user {username}: {exc}") from exc
        finally:
            if ctx is not None:
                try:
                    ctx.unbind()
                except Exception as exc:  # noqa: BLE001
                    logger.debug("Ignoring error closing LDAP context: %s", exc)

    def find_users(
        self,
        fields: AbstractSet[str],
        query: Optional[str],
        start_index: int = -1,
        num_results: int = -1,
    ) -> Sequence[User]:
        """Search users whose *fields* match *query*.

        Returns an empty list without contacting LDAP when *fields* or
        *query* is empty, or when terms are searched separately and *query*
        holds no term.

        Raises
        ------
        InvalidFieldError
            If *fields* contains fields that are not searchable.
        DirectoryError
            If the directory cannot be searched.
        """
        logger.debug("%s: Search for %s", type(self).__name__, query)
        logger.debug("%s: Fields %s", type(self).__name__, sorted(fields))

        if not fields or not query:
            return []

        settings = self._settings
        if settings.separate_search_terms and not query.split():
            return []
        manager = self._manager
        search_filter = build_search_filter(
            fields,
            query,
            search_fields=settings.search_fields,
            search_name_fields=settings.search_name_fields,
            scope_filter=manager.search_filter,
            separate_terms=settings.separate_search_terms,
        )
        logger.debug("%s: ldap query = %s", type(self).__name__, search_filter)

        usernames = manager.retrieve_list(
            manager.username_attr,
            search_filter,
            start_index,
            num_results,
            manager.username_suffix,
        )
        return UserCollection(usernames, self.load_user)

    # ------------------------------------------------------------------
    # Pass-through
    # ------------------------------------------------------------------
    def create_user(self, username: str, password: str, name: str | None, email: str | None) -> User:
        return self._delegate.create_user(username, password, name, email)

    def delete_user(self, username: str) -> None:
        self._delegate.delete_user(username)

    def get_user_count(self) -> int:
        return self._delegate.get_user_count()

    def get_users(self, start_index: int = -1, num_results: int = -1):
        return self._delegate.get_users(start_index, num_results)

    def get_usernames(self) -> List[str]:
        return self._delegate.get_usernames()

    def set_name(self, username: str, name: str) -> None:
        self._delegate.set_name(username, name)

    def set_email(self, username: str, email: str) -> None:
        self._delegate.set_email(username, email)

    def set_creation_date(self, username: str, creation_date: datetime) -> None:
        self._delegate.set_creation_date(username, creation_date)

    def set_modification_date(self, username: str, modification_date: datetime) -> None:
        self._delegate.set_modification_date(username, modification_date)

    def is_read_only(self) -> bool:
        return self._delegate.is_read_only()

    def is_name_required(self) -> bool:
        return self._delegate.is_name_required()

    def is_email_required(self) -> bool:
        return self._delegate.is_email_required()


def _timestamp(value: Optional[str]) -> datetime:
    """Parse an operational time stamp; absent or blank means now."""
    if value is None or not value.strip():
        return datetime.now(timezone.utc)
    return parse_ldap_date(value)

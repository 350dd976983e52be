"""Exceptions raised by the LDAP user provider."""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "DirectoryError",
    "InvalidFieldError",
    "LdapLookupError",
    "ProviderError",
    "UnsupportedOperationError",
    "UserNotFoundError",
]


class ProviderError(Exception):
    """Base class for provider errors."""


class ConfigurationError(ProviderError):
    """A configuration string (search fields, name fields) is malformed."""


class InvalidFieldError(ProviderError, ValueError):
    """A search was requested on fields that are not configured."""

    def __init__(self, fields) -> None:
        self.fields = sorted(fields)
        super().__init__(f"Search fields {self.fields} are not valid.")


class UserNotFoundError(ProviderError):
    """The user could not be loaded.

    Wraps whatever went wrong while talking to the directory; the original
    exception is available as ``__cause__``.
    """


class LdapLookupError(ProviderError):
    """The directory returned no entry for a lookup."""


class DirectoryError(ProviderError):
    """The directory could not be reached or rejected a search.

    The ldap3 exception is available as ``__cause__``.
    """


class UnsupportedOperationError(ProviderError, NotImplementedError):
    """The operation is not available on a read-only directory."""

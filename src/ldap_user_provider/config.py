"""Central configuration dataclass loaded from environment variables.

The provider-specific options mirror the flat ``ldap.*`` properties of the
user manager that hosts the provider; :meth:`Config.from_properties` accepts
them under their camelCase keys.
"""
from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping

from .core.constants import (
    YES_VALUES,
    DEFAULT_LDAP_HOST,
    DEFAULT_LDAP_MAIL_ATTR,
    DEFAULT_LDAP_NAME_ATTR,
    DEFAULT_LDAP_PAGE_SIZE,
    DEFAULT_LDAP_TIMEOUT,
    DEFAULT_LDAP_USERNAME_ATTR,
)


def _truthy(value: Any) -> bool:
    return str(value).strip().lower() in YES_VALUES


def _env_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return _truthy(val)


def _env(name: str, default: str | None = None):
    return field(default_factory=lambda: os.getenv(name, default))


def _env_flag(name: str, default: bool = False):
    return field(default_factory=lambda: _env_bool(name, default))


def _env_int(name: str, default: int):
    return field(default_factory=lambda: int(os.getenv(name, str(default))))


# flat property key -> Config attribute
PROPERTY_KEYS: Dict[str, str] = {
    'host': 'ldap_host',
    'bindDN': 'ldap_bind_dn',
    'bindPassword': 'ldap_bind_password',
    'baseDN': 'ldap_base_dn',
    'alternateBaseDN': 'ldap_alternate_base_dn',
    'usernameField': 'ldap_username_attr',
    'nameField': 'ldap_name_attr',
    'emailField': 'ldap_mail_attr',
    'searchFilter': 'ldap_search_filter',
    'usernameSuffix': 'ldap_username_suffix',
    'displayNameTemplate': 'display_name_template',
    'separateSearchTerms': 'separate_search_terms',
    'seperateSearchTerms': 'separate_search_terms',
    'searchFields': 'search_fields',
    'searchNameFields': 'search_name_fields',
    'xmppDomain': 'xmpp_domain',
    'ignoreCert': 'ignore_ldaps_cert',
    'caFile': 'ldap_ca_file',
    'timeout': 'ldap_timeout',
    'pageSize': 'ldap_page_size',
}


@dataclass(slots=True)
class Config:
    """Runtime configuration derived from environment variables."""

    # LDAP connection ---------------------------------------------------
    ldap_host: str = _env('LDAP_HOST', DEFAULT_LDAP_HOST)
    ldap_bind_dn: str = _env('LDAP_BIND_DN', '')
    ldap_bind_password: str = _env('LDAP_BIND_PASSWORD', '')
    ldap_base_dn: str = _env('LDAP_BASE_DN', '')
    ldap_alternate_base_dn: str | None = _env('LDAP_ALTERNATE_BASE_DN')
    ignore_ldaps_cert: bool = _env_flag('IGNORE_LDAPS_CERT')
    ldap_ca_file: str | None = _env('LDAP_CA_FILE')
    ldap_timeout: int = _env_int('LDAP_TIMEOUT', DEFAULT_LDAP_TIMEOUT)
    ldap_page_size: int = _env_int('LDAP_PAGE_SIZE', DEFAULT_LDAP_PAGE_SIZE)

    # LDAP schema -------------------------------------------------------
    ldap_username_attr: str = _env('LDAP_USERNAME_FIELD', DEFAULT_LDAP_USERNAME_ATTR)
    ldap_name_attr: str = _env('LDAP_NAME_FIELD', DEFAULT_LDAP_NAME_ATTR)
    ldap_mail_attr: str = _env('LDAP_EMAIL_FIELD', DEFAULT_LDAP_MAIL_ATTR)
    ldap_search_filter: str | None = _env('LDAP_SEARCH_FILTER')
    ldap_username_suffix: str | None = _env('LDAP_USERNAME_SUFFIX')

    # Provider ----------------------------------------------------------
    display_name_template: str | None = _env('LDAP_DISPLAY_NAME_TEMPLATE')
    separate_search_terms: bool = _env_flag('LDAP_SEPARATE_SEARCH_TERMS')
    search_fields: str | None = _env('LDAP_SEARCH_FIELDS')
    search_name_fields: str | None = _env('LDAP_SEARCH_NAME_FIELDS')

    # XMPP --------------------------------------------------------------
    xmpp_domain: str | None = _env('XMPP_DOMAIN')

    debug: str = field(default_factory=lambda: os.getenv('DEBUG', '').upper())

    def __post_init__(self) -> None:
        # default scope filter matches on the username attribute
        if not self.ldap_search_filter:
            self.ldap_search_filter = f"({self.ldap_username_attr}={{0}})"

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "Config":
        """Build a config from flat ``key -> value`` properties.

        Keys may carry an ``ldap.`` prefix.  Unknown keys are ignored; missing
        keys fall back to the environment defaults.
        """
        kwargs: Dict[str, Any] = {}
        types = {f.name: f.type for f in fields(cls)}
        for key, value in properties.items():
            attr = PROPERTY_KEYS.get(key.removeprefix('ldap.'))
            if attr is None or value is None:
                continue
            kind = types[attr]
            if kind == 'bool':
                value = value if isinstance(value, bool) else _truthy(value)
            elif kind == 'int':
                value = int(value)
            kwargs[attr] = value
        return cls(**kwargs)

    def masked(self) -> Dict[str, Any]:
        """Config as a dict with secrets replaced, suitable for logging."""
        cfg_dict = asdict(self)
        for k in cfg_dict:
            if any(s in k.lower() for s in ("password", "secret", "token")):
                cfg_dict[k] = "***"
        return cfg_dict

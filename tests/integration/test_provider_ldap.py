"""Tests against a live directory.

Connection settings come from ``LDAP_*`` variables or the project ``.env``;
the defaults match a local 389ds container.  The whole module is skipped when
the server cannot be reached.
"""
import os
from pathlib import Path
from typing import Dict

import pytest
from ldap3 import Connection
from ldap3.core.exceptions import LDAPException

from ldap_user_provider.config import Config
from ldap_user_provider.exceptions import UserNotFoundError
from ldap_user_provider.ldap_client import LdapManager
from ldap_user_provider.provider import LdapUserProvider

pytestmark = pytest.mark.integration

# ---------------------------------------------------------------------------
# Helpers for loading LDAP connection variables
# ---------------------------------------------------------------------------


def _parse_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """Very small .env parser so we don't need extra deps."""
    env: Dict[str, str] = {}
    if not dotenv_path.exists():
        return env
    for line in dotenv_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        k, v = line.split("=", 1)
        env[k.strip()] = v.strip()
    return env


ROOT = Path(__file__).resolve().parents[2]
DOTENV = ROOT / ".env"
if DOTENV.exists():
    os.environ.update({k: v for k, v in _parse_dotenv(DOTENV).items() if k not in os.environ})

_defaults = {
    "LDAP_HOST": "ldap://localhost:3389",
    "LDAP_BIND_DN": "cn=Directory Manager",
    "LDAP_BIND_PASSWORD": "adminpassword",
    "LDAP_BASE_DN": "dc=domain,dc=local",
}
for k, v in _defaults.items():
    os.environ.setdefault(k, v)

# Test constants – adapt if your directory differs
TEST_UID = os.getenv("TEST_LDAP_UID", "user")
TEST_TEMPLATE = os.getenv("TEST_LDAP_TEMPLATE", "{givenName} {sn}")


@pytest.fixture(scope="module")
def manager() -> LdapManager:
    mgr = LdapManager.from_config(Config())
    try:
        conn: Connection = mgr.get_context()
    except LDAPException as exc:
        pytest.skip(f"LDAP server not reachable: {exc}")
    conn.unbind()
    return mgr


@pytest.fixture()
def provider(manager) -> LdapUserProvider:  # noqa: ARG001
    cfg = Config(
        display_name_template=TEST_TEMPLATE,
        separate_search_terms=True,
        search_fields="Username/uid,Name/cn,Email/mail,Given Name/givenName,Family Name/sn",
        search_name_fields="Given Name,Family Name",
    )
    return LdapUserProvider.from_config(cfg)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_find_user_dn(manager):
    dn = manager.find_user_dn(TEST_UID)
    assert dn.lower().startswith(f"uid={TEST_UID}")


def test_load_user(provider):
    user = provider.load_user(TEST_UID)
    print(f"\nLoaded {user}")
    assert user.username == TEST_UID
    assert user.name is not None
    assert user.creation_date.tzinfo is not None


def test_load_unknown_user(provider):
    with pytest.raises(UserNotFoundError):
        provider.load_user("no-such-user-hopefully")


def test_list_usernames(provider):
    names = provider.get_usernames()
    assert TEST_UID in names
    assert provider.get_user_count() == len(names)


def test_search_by_username(provider):
    found = provider.find_users({"Username"}, TEST_UID)
    assert TEST_UID in found.usernames


def test_search_pagination(provider):
    everything = provider.find_users({"Username"}, "*").usernames
    page = provider.find_users({"Username"}, "*", 1, 1).usernames
    if len(everything) > 1:
        assert page == everything[1:2]

import pytest

from ldap_user_provider.config import Config


def test_defaults(monkeypatch):
    for name in ("LDAP_HOST", "LDAP_USERNAME_FIELD", "LDAP_SEARCH_FILTER", "LDAP_SEPARATE_SEARCH_TERMS", "LDAP_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    cfg = Config()
    assert cfg.ldap_host == "ldap://localhost:389"
    assert cfg.ldap_username_attr == "uid"
    assert cfg.ldap_search_filter == "(uid={0})"
    assert cfg.separate_search_terms is False
    assert cfg.ldap_timeout == 5


def test_environment(monkeypatch):
    monkeypatch.setenv("LDAP_DISPLAY_NAME_TEMPLATE", "{givenName} {sn}")
    monkeypatch.setenv("LDAP_SEPARATE_SEARCH_TERMS", "true")
    monkeypatch.setenv("LDAP_SEARCH_FIELDS", "Username/uid,Family Name/sn")
    monkeypatch.setenv("LDAP_SEARCH_NAME_FIELDS", "Family Name")
    monkeypatch.setenv("LDAP_USERNAME_FIELD", "sAMAccountName")
    monkeypatch.delenv("LDAP_SEARCH_FILTER", raising=False)
    monkeypatch.setenv("LDAP_PAGE_SIZE", "100")
    cfg = Config()
    assert cfg.display_name_template == "{givenName} {sn}"
    assert cfg.separate_search_terms is True
    assert cfg.search_fields == "Username/uid,Family Name/sn"
    assert cfg.search_name_fields == "Family Name"
    assert cfg.ldap_search_filter == "(sAMAccountName={0})"
    assert cfg.ldap_page_size == 100


def test_from_properties(monkeypatch):
    monkeypatch.delenv("LDAP_DISPLAY_NAME_TEMPLATE", raising=False)
    cfg = Config.from_properties(
        {
            "ldap.displayNameTemplate": "{cn}",
            "ldap.seperateSearchTerms": "true",
            "searchFields": "Name/cn",
            "searchNameFields": None,
            "usernameField": "uid",
            "searchFilter": "(&(objectClass=person)(uid={0}))",
            "timeout": "10",
            "somethingElse": "ignored",
        }
    )
    assert cfg.display_name_template == "{cn}"
    assert cfg.separate_search_terms is True
    assert cfg.search_fields == "Name/cn"
    assert cfg.ldap_search_filter == "(&(objectClass=person)(uid={0}))"
    assert cfg.ldap_timeout == 10


def test_from_properties_false_flag():
    cfg = Config.from_properties({"separateSearchTerms": "false"})
    assert cfg.separate_search_terms is False


def test_masked_hides_password():
    cfg = Config(ldap_bind_password="hunter2")
    masked = cfg.masked()
    assert masked["ldap_bind_password"] == "***"
    assert masked["ldap_host"] == cfg.ldap_host


@pytest.mark.parametrize("value", ["True", "YES", " On ", "1", True])
def test_from_properties_flag_is_case_insensitive(value):
    cfg = Config.from_properties({"ldap.separateSearchTerms": value})
    assert cfg.separate_search_terms is True


def test_environment_flag_is_case_insensitive(monkeypatch):
    monkeypatch.setenv("LDAP_SEPARATE_SEARCH_TERMS", "True")
    monkeypatch.setenv("IGNORE_LDAPS_CERT", "Yes")
    cfg = Config()
    assert cfg.separate_search_terms is True
    assert cfg.ignore_ldaps_cert is True

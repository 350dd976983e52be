import pytest

from ldap_user_provider.exceptions import InvalidFieldError
from ldap_user_provider.field_map import parse_search_fields, parse_search_name_fields
from ldap_user_provider.filter_builder import (
    build_search_filter,
    process_search_term,
    render_scope_filter,
    split_search_terms,
)

SEARCH_FIELDS = parse_search_fields(
    "Username/uid,Name/uid,Email/mail,Given Name/givenName,Family Name/sn",
    username_attr="uid",
    name_attr="sn",
    email_attr="mail",
)
NAME_FIELDS = parse_search_name_fields("Given Name,Family Name")


def _build(fields, query, separate_terms=True, name_fields=NAME_FIELDS):
    return build_search_filter(
        set(fields),
        query,
        search_fields=SEARCH_FIELDS,
        search_name_fields=name_fields,
        scope_filter="(uid={0})",
        separate_terms=separate_terms,
    )


@pytest.mark.parametrize(
    "term,expected",
    [
        ("*search*", "*search*"),
        ("search", "search*"),
        ("*sea()\\/rch*", "*sea\\28\\29\\5c\\2frch*"),
        ("a\\b", "a\\5cb*"),
        ("", "*"),
        ("cn=x/y", "cn=x\\2fy*"),
    ],
)
def test_process_search_term(term, expected):
    assert process_search_term(term) == expected


def test_process_search_term_keeps_single_trailing_wildcard():
    once = process_search_term("jo")
    assert process_search_term(once) == once == "jo*"


def test_process_search_term_escapes_backslashes_again():
    """Sanitising an already escaped term double-escapes the backslash."""
    once = process_search_term("(")
    assert once == "\\28*"
    assert process_search_term(once) == "\\5c28*"


def test_render_scope_filter():
    assert render_scope_filter("(uid={0})") == "(uid=*)"
    assert render_scope_filter("(&(objectClass=person)(uid={0}))", "jdoe") == "(&(objectClass=person)(uid=jdoe))"


@pytest.mark.parametrize(
    "query,separate,expected",
    [
        ("a b", True, ["a", "b"]),
        ("  a \t b  ", True, ["a", "b"]),
        ("a b", False, ["a b"]),
    ],
)
def test_split_search_terms(query, separate, expected):
    assert split_search_terms(query, separate) == expected


def test_single_term_name_expansion():
    flt = _build({"Name"}, "*search*", separate_terms=False)
    assert flt == "(&((uid=*))(|(sn=*search*)(givenName=*search*)))"


def test_multiple_terms():
    flt = _build({"Name"}, "*search* *term*")
    assert flt == "(&((uid=*))(|(sn=*search*)(givenName=*search*))(|(sn=*term*)(givenName=*term*)))"


def test_single_term_not_separated():
    flt = _build({"Name"}, "*search term*", separate_terms=False)
    assert flt == "(&((uid=*))(|(sn=*search term*)(givenName=*search term*)))"


def test_naughty_characters():
    flt = _build({"Name"}, "*sea()\\/rch*")
    escaped = "*sea\\28\\29\\5c\\2frch*"
    assert flt == f"(&((uid=*))(|(sn={escaped})(givenName={escaped})))"


def test_single_field_is_not_wrapped():
    assert _build({"Email"}, "jdoe") == "(&((uid=*))(mail=jdoe*))"


def test_name_and_other_fields_are_ordered_by_logical_name():
    flt = _build({"Name", "Email"}, "jo")
    assert flt == "(&((uid=*))(|(mail=jo*)(sn=jo*)(givenName=jo*)))"


def test_unknown_field_rejected():
    with pytest.raises(InvalidFieldError) as info:
        _build({"Name", "Phone"}, "jo")
    assert "Phone" in str(info.value)


def test_invalid_field_error_is_value_error():
    with pytest.raises(ValueError):
        _build({"Phone"}, "jo")


def test_name_without_expansion_rejected():
    with pytest.raises(InvalidFieldError):
        _build({"Name"}, "jo", name_fields=None)


def test_name_field_without_mapping_rejected():
    with pytest.raises(InvalidFieldError) as info:
        _build({"Name"}, "jo", name_fields=frozenset({"Nickname"}))
    assert "Nickname" in str(info.value)


def test_name_expansion_without_name_fields_keeps_other_fields():
    assert _build({"Name", "Email"}, "jo", name_fields=None) == "(&((uid=*))(mail=jo*))"

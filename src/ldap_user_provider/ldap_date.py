"""Parsing of LDAP generalized time stamps.

Directories disagree on the exact format.  Values seen in the wild::

    20020228150820
    20030228150820Z
    20050228150820.12
    20060711011740.0Z

Only the leading ``yyyyMMddHHmmss`` digits are used.  A trailing ``Z`` marks
UTC; without it the time is taken to be local to this process.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from .core.constants import LDAP_DATE_FORMAT, LDAP_DATE_LENGTH

logger = logging.getLogger("ldap_user_provider.date")

__all__ = ["parse_ldap_date"]


def parse_ldap_date(text: Optional[str]) -> datetime:
    """Return *text* as an aware :class:`datetime`.

    Never raises: an unparseable value is logged and the current time is
    returned instead, so a bad time stamp does not stop a user from loading.
    """
    try:
        value = text.strip()
        digits = value[:LDAP_DATE_LENGTH]
        if len(digits) != LDAP_DATE_LENGTH or not digits.isdigit():
            raise ValueError(f"not an LDAP date: {text!r}")
        parsed = datetime.strptime(digits, LDAP_DATE_FORMAT)
        if value.endswith("Z"):
            return parsed.replace(tzinfo=timezone.utc)
        # naive -> local time zone of the process
        return parsed.astimezone()
    except (AttributeError, TypeError, ValueError) as exc:
        logger.error("Failed to parse LDAP date %r: %s", text, exc)
        return datetime.now(timezone.utc)

"""Immutable search and display settings of a provider."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from .display_name import required_attributes
from .exceptions import ConfigurationError
from .field_map import parse_search_fields, parse_search_name_fields

logger = logging.getLogger("ldap_user_provider.settings")

__all__ = ["ProviderSettings"]


@dataclass(frozen=True, slots=True)
class ProviderSettings:
    """Everything derived from configuration that searches and loads read.

    Instances are never modified.  Changing the template produces a new
    instance whose required attributes are recomputed with it.
    """

    username_attr: str
    name_attr: str
    email_attr: str
    search_fields: Mapping[str, str]
    search_name_fields: Optional[FrozenSet[str]]
    display_name_template: Optional[str]
    attributes_to_load: Tuple[str, ...]
    separate_search_terms: bool = False

    @classmethod
    def build(
        cls,
        *,
        username_attr: str,
        name_attr: str,
        email_attr: str,
        display_name_template: Optional[str] = None,
        separate_search_terms: bool = False,
        search_fields: Optional[str] = None,
        search_name_fields: Optional[str] = None,
    ) -> "ProviderSettings":
        """Parse the raw configuration strings.

        A malformed ``searchFields`` value is logged and leaves the
        corresponding setting empty rather than failing.
        """
        try:
            fields = parse_search_fields(
                search_fields,
                username_attr=username_attr,
                name_attr=name_attr,
                email_attr=email_attr,
            )
        except ConfigurationError as exc:
            logger.error("Error parsing LDAP search fields %r: %s", search_fields, exc)
            fields = {}

        return cls(
            username_attr=username_attr,
            name_attr=name_attr,
            email_attr=email_attr,
            search_fields=MappingProxyType(dict(fields)),
            search_name_fields=parse_search_name_fields(search_name_fields),
            display_name_template=display_name_template,
            attributes_to_load=required_attributes(
                display_name_template,
                username_attr=username_attr,
                name_attr=name_attr,
                email_attr=email_attr,
            ),
            separate_search_terms=separate_search_terms,
        )

    def with_display_name_template(self, template: Optional[str]) -> "ProviderSettings":
        return replace(
            self,
            display_name_template=template,
            attributes_to_load=required_attributes(
                template,
                username_attr=self.username_attr,
                name_attr=self.name_attr,
                email_attr=self.email_attr,
            ),
        )

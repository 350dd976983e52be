"""Shared constants across the application."""

# Truth value strings
YES_VALUES = ('1', 'TRUE', 'YES', 'ON', 'true', 'yes', 'on')

# Default configuration values
DEFAULT_LDAP_HOST = 'ldap://localhost:389'
DEFAULT_LDAP_TIMEOUT = 5
DEFAULT_LDAP_PAGE_SIZE = 500
DEFAULT_LDAP_USERNAME_ATTR = 'uid'
DEFAULT_LDAP_NAME_ATTR = 'cn'
DEFAULT_LDAP_MAIL_ATTR = 'mail'

# Operational timestamp attributes loaded with every user
LDAP_CREATE_TIMESTAMP_ATTR = 'createTimestamp'
LDAP_MODIFY_TIMESTAMP_ATTR = 'modifyTimestamp'

# yyyyMMddHHmmss, optionally followed by fractions and/or "Z"
LDAP_DATE_FORMAT = '%Y%m%d%H%M%S'
LDAP_DATE_LENGTH = 14

# Logical search field names
FIELD_USERNAME = 'Username'
FIELD_NAME = 'Name'
FIELD_EMAIL = 'Email'

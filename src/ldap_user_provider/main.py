"""Command-line entrypoint.

Looks up a single user or runs a search against the configured directory,
printing what the XMPP server would see.  Configuration comes from the
environment, see :class:`~ldap_user_provider.config.Config`.

    ldap-user-provider lookup jdoe
    ldap-user-provider search --field Name "jo sm"
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from ldap_user_provider.config import Config
from ldap_user_provider.core.constants import FIELD_NAME, YES_VALUES
from ldap_user_provider.exceptions import DirectoryError, InvalidFieldError, UserNotFoundError
from ldap_user_provider.models import User
from ldap_user_provider.provider import LdapUserProvider

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

def _setup_logging() -> logging.Logger:
    """Configure and return the application logger."""

    debug = os.getenv("DEBUG", "").upper() in YES_VALUES

    # Configure only the application logger, not the root logger
    app_logger = logging.getLogger("ldap_user_provider")
    app_logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Prevent propagation to the root logger to avoid affecting other modules
    app_logger.propagate = False

    # Clear any existing handlers to avoid duplicate logs
    for h in list(app_logger.handlers):
        app_logger.removeHandler(h)

    formatter = logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S %d.%m.%y",
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    return app_logger

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def _format_user(user: User) -> str:
    return (
        f"{user.username}\tname={user.name or ''}\temail={user.email or ''}\t"
        f"created={user.creation_date.isoformat()}\tmodified={user.modification_date.isoformat()}"
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ldap-user-provider",
        description="Look up and search LDAP users with templated display names.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    lookup = sub.add_parser("lookup", help="load a single user")
    lookup.add_argument("username")

    search = sub.add_parser("search", help="search users")
    search.add_argument("query")
    search.add_argument(
        "--field", "-f", dest="fields", action="append", default=None,
        help="logical field to search (repeatable, default: Name)",
    )
    search.add_argument("--start", type=int, default=-1, help="index of the first result")
    search.add_argument("--count", type=int, default=-1, help="maximum number of results")
    search.add_argument("--names-only", action="store_true", help="print usernames without loading users")

    sub.add_parser("fields", help="list searchable fields")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run one command and return the process exit status."""
    logger = _setup_logging()
    args = _build_parser().parse_args(argv)

    cfg = Config()
    logger.debug("Starting with config: %s", cfg.masked())
    provider = LdapUserProvider.from_config(cfg)

    try:
        if args.command == "lookup":
            print(_format_user(provider.load_user(args.username)))
        elif args.command == "search":
            fields = set(args.fields or [FIELD_NAME])
            users = provider.find_users(fields, args.query, args.start, args.count)
            found = 0
            if args.names_only:
                for name in getattr(users, "usernames", []):
                    print(name)
                    found += 1
            else:
                for user in users:
                    print(_format_user(user))
                    found += 1
            logger.info("%d user(s) found", found)
        else:
            for name in provider.get_search_fields():
                print(name)
    except UserNotFoundError as exc:
        logger.error("%s", exc)
        return 1
    except InvalidFieldError as exc:
        logger.error("%s (searchable: %s)", exc, ", ".join(provider.get_search_fields()))
        return 1
    except DirectoryError as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

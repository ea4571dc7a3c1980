#!/usr/bin/env python3
"""
memberscope - Directory Group Membership Reports
================================================

Command-line interface for the membership reports.

Usage:
    # Groups only one of two users holds
    memberscope -s 192.168.1.100 -d corp.local -u auditor -p Secret compare jdoe asmith

    # Groups both users hold, looked up by UPN
    memberscope -s dc01 -d corp.local compare --field userPrincipalName \\
        jdoe@corp.local asmith@corp.local --mode common

    # Which groups the users of an OU hold, and how many of them
    memberscope -s dc01 -d corp.local access --search-base "OU=Sales,DC=corp,DC=local"

    # Everyone who reaches a group, including through nested groups
    memberscope -s dc01 -d corp.local reach "Domain Admins"

    # Groups without members
    memberscope -s dc01 -d corp.local empty-groups

    # A random password (no directory access)
    memberscope password --length 20

Environment Variables:
    MEMBERSCOPE_BIND_USER       Bind user when -u is not given
    MEMBERSCOPE_BIND_PASSWORD   Bind password when -p is not given
"""

import argparse
import sys
from typing import Optional

from . import __version__
from .bridge import (
    connect,
    run_access_report,
    run_comparison,
    run_empty_group_report,
    run_reach_report,
)
from .config import ScopeConfig, set_config
from .errors import MemberscopeError
from .ingestion.ldap_directory import SEARCH_FIELDS, close_session
from .model.schemas import CompareMode, UnresolvedIdentity
from .passwords import generate_password
from .reporting.report_builder import generate_text_report


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="memberscope",
        description="memberscope - directory group membership reports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # LDAP options
    ldap_group = parser.add_argument_group("LDAP Connection")
    ldap_group.add_argument("-s", "--server", help="Domain controller IP address or hostname")
    ldap_group.add_argument("-d", "--domain", help="Domain name (e.g., corp.local)")
    ldap_group.add_argument("-u", "--username", help="Bind username")
    ldap_group.add_argument("-p", "--password", help="Bind password")
    ldap_group.add_argument("--ssl", action="store_true", help="Use LDAPS (port 636)")
    ldap_group.add_argument("--page-size", type=int, default=1000, help="LDAP page size (default: 1000)")
    ldap_group.add_argument("--batch-size", type=int, default=200,
                            help="Identities per membership batch (default: 200)")

    # Output options
    output_group = parser.add_argument_group("Output")
    output_group.add_argument("-o", "--output", default="output",
                              help="Output directory for results (default: ./output)")
    output_group.add_argument("--delimiter", default=",", help="Field delimiter of exports (default: ,)")

    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"memberscope {__version__}")

    commands = parser.add_subparsers(dest="command", required=True)

    compare_cmd = commands.add_parser("compare", help="Compare the groups of two identities")
    compare_cmd.add_argument("identity1", help="First identity")
    compare_cmd.add_argument("identity2", help="Second identity")
    compare_cmd.add_argument("--mode", choices=[m.value for m in CompareMode], default="diff",
                             help="diff: groups only one side holds; common: shared groups")
    compare_cmd.add_argument("--field", choices=SEARCH_FIELDS, default="sAMAccountName",
                             help="Attribute the identities are looked up by")

    access_cmd = commands.add_parser("access", help="Group access counts across identities")
    access_cmd.add_argument("--search-base", help="Base DN of the identity scan")
    access_cmd.add_argument("--filter", dest="ldap_filter", default=None,
                            help="LDAP filter selecting identities")

    reach_cmd = commands.add_parser("reach", help="Identities that reach a group")
    reach_cmd.add_argument("group", help="Group DN, cn or sAMAccountName")
    reach_cmd.add_argument("--max-depth", type=_positive_int, default=None,
                           help="Nesting levels to walk (1 = direct members only)")

    empty_cmd = commands.add_parser("empty-groups", help="Groups without members")
    empty_cmd.add_argument("--search-base", help="Base DN of the group scan")

    password_cmd = commands.add_parser("password", help="Generate a random password")
    password_cmd.add_argument("--length", type=int, default=None, help="Password length")

    return parser


def build_config(args: argparse.Namespace) -> ScopeConfig:
    """Translate parsed arguments into a ScopeConfig."""
    passwords = {}
    # Only the password subcommand has --length
    if getattr(args, "length", None) is not None:
        passwords["length"] = args.length

    return ScopeConfig.from_dict({
        "ldap": {
            "use_ssl": args.ssl,
            "page_size": args.page_size,
            "batch_size": args.batch_size,
        },
        "output": {
            "output_dir": args.output,
            "delimiter": args.delimiter,
        },
        "passwords": passwords,
        "verbose": args.verbose,
    })


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "password":
        config = build_config(args)
        try:
            print(generate_password(config=config.passwords))
        except ValueError as e:
            parser.error(str(e))
        return 0

    if not (args.server and args.domain):
        parser.error("Must provide the directory: -s (server) and -d (domain)")

    config = build_config(args)
    set_config(config)

    session = None
    try:
        session = connect(args.server, args.domain, args.username, args.password, config)

        if args.command == "compare":
            result = run_comparison(
                session,
                UnresolvedIdentity(args.identity1, args.field),
                UnresolvedIdentity(args.identity2, args.field),
                args.mode,
                config
            )
        elif args.command == "access":
            kwargs = {"search_base": args.search_base, "config": config}
            if args.ldap_filter:
                kwargs["ldap_filter"] = args.ldap_filter
            result = run_access_report(session, **kwargs)
        elif args.command == "reach":
            result = run_reach_report(session, args.group, args.max_depth, config)
        else:
            result = run_empty_group_report(session, args.search_base, config)

        print(generate_text_report(result, max_rows=None if args.verbose else 50))
        return 0

    except MemberscopeError as e:
        print(f"\n[!] Error: {e}")
        return 1
    finally:
        if session is not None:
            close_session(session)


if __name__ == "__main__":
    sys.exit(main())

"""
SendGrid CLI - Opinionated command-line interface.

This layer provides the user-facing CLI commands, using the SDK layer
for all operations. It handles:
- Argument parsing
- TTY detection for human vs machine output
- Pretty formatting for human output
- JSON output for piping/automation
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from sendgrid_cli.core.errors import CLIError, ValidationError
from sendgrid_cli.sdk import SendGridClient
from sendgrid_cli.webhooks import parse_events

# =============================================================================
# Output Helpers
# =============================================================================


HUMAN_LIMIT = 20  # Default limit for human-readable output


def is_tty() -> bool:
    """Check if stdout is a TTY (human) or pipe (LLM/machine)."""
    return sys.stdout.isatty()


def json_output(data: Any, pretty: bool = False) -> None:
    """Print JSON output."""
    indent = 2 if pretty or is_tty() else None
    print(json.dumps(data, indent=indent, default=str))


def error_output(error: CLIError) -> None:
    """Print error and exit."""
    json_output(error.to_dict())
    sys.exit(1)


def success_output(data: Any) -> None:
    """Print success output."""
    json_output(data)


def table_output(
    headers: list[str],
    rows: list[list[str]],
    widths: list[int],
) -> None:
    """Print a formatted table for human output."""
    # Header
    header_line = "  ".join(h.ljust(w) for h, w in zip(headers, widths))
    print(header_line)
    print("-" * len(header_line))

    # Rows
    for row in rows:
        print("  ".join(str(v)[:w].ljust(w) for v, w in zip(row, widths)))


def _format_time(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def parse_date(value: str) -> datetime:
    """argparse type for YYYY-MM-DD or ISO 8601 timestamps."""
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date: {value} (expected YYYY-MM-DD)")


# =============================================================================
# API Key Commands
# =============================================================================


def cmd_keys_list(client: SendGridClient, _args: argparse.Namespace) -> None:
    """List API keys."""
    keys = client.api_keys.list()

    if is_tty():
        if not keys:
            print("No API keys found.")
            return
        table_output(["ID", "Name"], [[k.key_id, k.name] for k in keys], [24, 50])
    else:
        success_output({"data": [{"api_key_id": k.key_id, "name": k.name} for k in keys]})


def cmd_keys_get(client: SendGridClient, args: argparse.Namespace) -> None:
    """Get an API key."""
    key = client.api_keys.get(args.key_id)
    success_output({"api_key_id": key.key_id, "name": key.name, "scopes": key.scopes})


def cmd_keys_create(client: SendGridClient, args: argparse.Namespace) -> None:
    """Create an API key."""
    if args.all_scopes:
        key = client.api_keys.create_with_all_permissions(args.name)
    else:
        key = client.api_keys.create(args.name, args.scope or None)
    success_output(
        {
            "api_key_id": key.key_id,
            "name": key.name,
            "api_key": key.key,
            "scopes": key.scopes,
            "message": "Store the key now, it will not be shown again.",
        }
    )


def cmd_keys_delete(client: SendGridClient, args: argparse.Namespace) -> None:
    """Revoke an API key."""
    client.api_keys.delete(args.key_id)
    success_output({"success": True, "message": f"API key {args.key_id} deleted"})


# =============================================================================
# Spam Report Commands
# =============================================================================


def _report_dict(report: Any) -> dict[str, Any]:
    return {"email": report.email, "created": report.created.isoformat() if report.created else None, "ip": report.ip}


def cmd_spam_list(client: SendGridClient, args: argparse.Namespace) -> None:
    """List spam reports."""
    if is_tty():
        reports = client.spam_reports.list(
            start_date=args.start,
            end_date=args.end,
            limit=args.limit if args.limit is not None else HUMAN_LIMIT,
            offset=args.offset or 0,
        )
        if not reports:
            print("No spam reports found.")
            return
        table_output(
            ["Email", "Created", "IP"],
            [[r.email, _format_time(r.created), r.ip or ""] for r in reports],
            [40, 16, 16],
        )
    else:
        reports = list(client.spam_reports.iterate(start_date=args.start, end_date=args.end))
        success_output({"data": [_report_dict(r) for r in reports], "total_count": len(reports)})


def cmd_spam_get(client: SendGridClient, args: argparse.Namespace) -> None:
    """Get the spam reports for one address."""
    reports = client.spam_reports.get(args.email)
    success_output({"data": [_report_dict(r) for r in reports]})


def cmd_spam_delete(client: SendGridClient, args: argparse.Namespace) -> None:
    """Delete spam reports."""
    if args.all:
        if args.emails:
            raise ValidationError("Pass either email addresses or --all, not both")
        client.spam_reports.delete_all()
        success_output({"success": True, "message": "All spam reports deleted"})
    elif len(args.emails) == 1:
        client.spam_reports.delete(args.emails[0])
        success_output({"success": True, "message": f"Spam report for {args.emails[0]} deleted"})
    elif args.emails:
        client.spam_reports.delete_multiple(args.emails)
        success_output({"success": True, "message": f"{len(args.emails)} spam reports deleted"})
    else:
        raise ValidationError("Pass at least one email address, or --all")


# =============================================================================
# Suppression Commands
# =============================================================================


def cmd_supp_list(client: SendGridClient, args: argparse.Namespace) -> None:
    """List suppressed addresses of an unsubscribe group."""
    emails = client.suppressions.list(args.group_id)
    if is_tty():
        if not emails:
            print("No suppressions found.")
            return
        for email in emails:
            print(email)
    else:
        success_output({"data": emails, "total_count": len(emails)})


def cmd_supp_add(client: SendGridClient, args: argparse.Namespace) -> None:
    """Suppress addresses for an unsubscribe group."""
    added = client.suppressions.add(args.group_id, args.emails)
    success_output({"success": True, "recipient_emails": added})


def cmd_supp_remove(client: SendGridClient, args: argparse.Namespace) -> None:
    """Remove an address from an unsubscribe group's suppressions."""
    client.suppressions.remove(args.group_id, args.email)
    success_output({"success": True, "message": f"{args.email} removed from group {args.group_id}"})


# =============================================================================
# Domain Commands
# =============================================================================


def cmd_domains_list(client: SendGridClient, args: argparse.Namespace) -> None:
    """List authenticated domains."""
    if is_tty():
        domains = client.domains.list(
            limit=args.limit if args.limit is not None else HUMAN_LIMIT,
            offset=args.offset or 0,
        )
        if not domains:
            print("No authenticated domains found.")
            return
        table_output(
            ["ID", "Domain", "Subdomain", "Valid"],
            [[str(d.id), d.domain, d.subdomain or "", "yes" if d.valid else "no"] for d in domains],
            [10, 40, 16, 6],
        )
    else:
        domains = list(client.domains.iterate())
        success_output(
            {
                "data": [{"id": d.id, "domain": d.domain, "subdomain": d.subdomain, "valid": d.valid} for d in domains],
                "total_count": len(domains),
            }
        )


def cmd_domains_get(client: SendGridClient, args: argparse.Namespace) -> None:
    """Get an authenticated domain with its DNS records."""
    domain = client.domains.get(args.domain_id)
    if is_tty():
        print(f"{domain.domain} (id {domain.id}) - {'valid' if domain.valid else 'not valid'}")
        table_output(
            ["Record", "Type", "Host", "Data", "Valid"],
            [[name, r.type, r.host, r.data, "yes" if r.valid else "no"] for name, r in domain.dns.items()],
            [12, 6, 40, 40, 6],
        )
    else:
        success_output(asdict(domain))


def cmd_domains_validate(client: SendGridClient, args: argparse.Namespace) -> None:
    """Validate the DNS records of an authenticated domain."""
    validation = client.domains.validate(args.domain_id)
    success_output(
        {
            "id": validation.id,
            "valid": validation.valid,
            "failed_records": validation.failed_records,
            "validation_results": {name: asdict(r) for name, r in validation.validation_results.items()},
        }
    )


# =============================================================================
# Webhook Commands
# =============================================================================


def cmd_webhook_parse(_client: SendGridClient, args: argparse.Namespace) -> None:
    """Parse an Event Webhook payload from a file or stdin."""
    try:
        payload = sys.stdin.buffer.read() if args.file == "-" else Path(args.file).read_bytes()
    except FileNotFoundError:
        raise ValidationError(f"File not found: {args.file}")
    except OSError as e:
        raise ValidationError(f"Cannot read {args.file}: {e.strerror or e}")

    events = parse_events(payload)
    success_output({"data": [asdict(e) for e in events], "total_count": len(events)})


# =============================================================================
# Main CLI
# =============================================================================


def create_parser() -> argparse.ArgumentParser:  # noqa: PLR0915
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sendgrid",
        description="SendGrid CLI - Command-line interface for the SendGrid v3 API",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Output Modes:
  TTY (human):  Pretty tables, limited rows
  Pipe (LLM):   Full JSON, auto-paginates all results

Examples:
  sendgrid api-keys list
  sendgrid api-keys create "Deploy key" --scope mail.send
  sendgrid spam-reports list --start 2024-01-01 | jq '.data[].email'
  sendgrid domains validate 12345
  sendgrid webhook parse events.json
""",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log HTTP requests to stderr")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # ========== API Keys ==========
    keys = subparsers.add_parser("api-keys", help="Manage API keys")
    keys.set_defaults(func=lambda _c, _a: keys.print_help())
    keys_sub = keys.add_subparsers(dest="subcommand")

    k_list = keys_sub.add_parser("list", help="List API keys")
    k_list.set_defaults(func=cmd_keys_list)

    k_get = keys_sub.add_parser("get", help="Get API key details")
    k_get.add_argument("key_id", help="API key ID")
    k_get.set_defaults(func=cmd_keys_get)

    k_create = keys_sub.add_parser("create", help="Create an API key")
    k_create.add_argument("name", help="Key name")
    k_create.add_argument("--scope", "-s", action="append", help="Scope to grant (repeatable)")
    k_create.add_argument("--all-scopes", action="store_true", help="Grant every scope you hold")
    k_create.set_defaults(func=cmd_keys_create)

    k_delete = keys_sub.add_parser("delete", help="Revoke an API key")
    k_delete.add_argument("key_id", help="API key ID")
    k_delete.set_defaults(func=cmd_keys_delete)

    # ========== Spam Reports ==========
    spam = subparsers.add_parser("spam-reports", help="Manage spam reports")
    spam.set_defaults(func=lambda _c, _a: spam.print_help())
    spam_sub = spam.add_subparsers(dest="subcommand")

    s_list = spam_sub.add_parser("list", help="List spam reports")
    s_list.add_argument("--start", type=parse_date, help="Created on or after (YYYY-MM-DD)")
    s_list.add_argument("--end", type=parse_date, help="Created on or before (YYYY-MM-DD)")
    s_list.add_argument("--limit", "-l", type=int, help="Max results (TTY only)")
    s_list.add_argument("--offset", "-o", type=int, help="Offset for pagination")
    s_list.set_defaults(func=cmd_spam_list)

    s_get = spam_sub.add_parser("get", help="Get spam reports for an address")
    s_get.add_argument("email", help="Email address")
    s_get.set_defaults(func=cmd_spam_get)

    s_delete = spam_sub.add_parser("delete", help="Delete spam reports")
    s_delete.add_argument("emails", nargs="*", help="Email addresses")
    s_delete.add_argument("--all", action="store_true", help="Delete every spam report")
    s_delete.set_defaults(func=cmd_spam_delete)

    # ========== Suppressions ==========
    supp = subparsers.add_parser("suppressions", help="Manage unsubscribe group suppressions")
    supp.set_defaults(func=lambda _c, _a: supp.print_help())
    supp_sub = supp.add_subparsers(dest="subcommand")

    u_list = supp_sub.add_parser("list", help="List suppressed addresses")
    u_list.add_argument("group_id", type=int, help="Unsubscribe group ID")
    u_list.set_defaults(func=cmd_supp_list)

    u_add = supp_sub.add_parser("add", help="Suppress addresses")
    u_add.add_argument("group_id", type=int, help="Unsubscribe group ID")
    u_add.add_argument("emails", nargs="+", help="Email addresses")
    u_add.set_defaults(func=cmd_supp_add)

    u_remove = supp_sub.add_parser("remove", help="Remove a suppressed address")
    u_remove.add_argument("group_id", type=int, help="Unsubscribe group ID")
    u_remove.add_argument("email", help="Email address")
    u_remove.set_defaults(func=cmd_supp_remove)

    # ========== Domains ==========
    domains = subparsers.add_parser("domains", help="Authenticated domains and DNS records")
    domains.set_defaults(func=lambda _c, _a: domains.print_help())
    domains_sub = domains.add_subparsers(dest="subcommand")

    d_list = domains_sub.add_parser("list", help="List authenticated domains")
    d_list.add_argument("--limit", "-l", type=int, help="Max results (TTY only)")
    d_list.add_argument("--offset", "-o", type=int, help="Offset for pagination")
    d_list.set_defaults(func=cmd_domains_list)

    d_get = domains_sub.add_parser("get", help="Get a domain and its DNS records")
    d_get.add_argument("domain_id", type=int, help="Domain ID")
    d_get.set_defaults(func=cmd_domains_get)

    d_validate = domains_sub.add_parser("validate", help="Validate a domain's DNS records")
    d_validate.add_argument("domain_id", type=int, help="Domain ID")
    d_validate.set_defaults(func=cmd_domains_validate)

    # ========== Webhook ==========
    webhook = subparsers.add_parser("webhook", help="Event Webhook helpers")
    webhook.set_defaults(func=lambda _c, _a: webhook.print_help())
    webhook_sub = webhook.add_subparsers(dest="subcommand")

    w_parse = webhook_sub.add_parser("parse", help="Parse an Event Webhook payload")
    w_parse.add_argument("file", help="Payload JSON file (or - for stdin)")
    w_parse.set_defaults(func=cmd_webhook_parse)

    return parser


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")

    client = SendGridClient()

    # Run command (all subparsers have default funcs that print help)
    try:
        args.func(client, args)
    except CLIError as e:
        error_output(e)


if __name__ == "__main__":
    main()

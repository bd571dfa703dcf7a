"""Command-line interface for notion2docs.

Settings come from the environment (a ``.env`` file in the working
directory is loaded first) and may be overridden per command::

    notion2docs auth
    notion2docs list --database-id <db>
    notion2docs transfer --page-id <page> [--page-id <page> ...]
    notion2docs transfer --database-id <db> --all --fetch-child-db
    notion2docs preview <page>
    notion2docs clear --yes
"""

from __future__ import annotations

import argparse
import sys

from dotenv import load_dotenv

from notion2docs.client import Notion2DocsClient
from notion2docs.config import Notion2DocsConfig
from notion2docs.docs_api import authorize
from notion2docs.errors import Notion2DocsError


def build_config(args: argparse.Namespace) -> Notion2DocsConfig:
    """Environment settings with command-line overrides applied."""
    return Notion2DocsConfig.from_env(
        google_doc_id=getattr(args, "doc_id", None),
        notion_database_id=getattr(args, "database_id", None),
        submit_mode=getattr(args, "mode", None),
        fetch_child_databases=True if getattr(args, "fetch_child_db", False) else None,
    )


def _print_pages(client: Notion2DocsClient, database_id: str) -> int:
    items = client.list_database_pages(database_id)
    if not items:
        print(f"No pages found in database {database_id}")
        return 0
    for item in items:
        print(f"{item.id}  {item.last_edited_time or '-':<24}  {item.title}")
    return len(items)


def cmd_transfer(args: argparse.Namespace, config: Notion2DocsConfig) -> int:
    """Transfer pages into the configured document."""
    config.validate_for_transfer()
    with Notion2DocsClient(config, interactive_auth=args.interactive) as client:
        page_ids = list(args.page_id or [])
        if not page_ids and config.notion_database_id:
            if not args.all:
                _print_pages(client, config.notion_database_id)
                print("Error: pass --page-id or --all to choose pages", file=sys.stderr)
                return 1
            page_ids = [item.id for item in client.list_database_pages()]
        if not page_ids and config.notion_page_id:
            page_ids = [config.notion_page_id]
        if not page_ids:
            print(
                "Error: no pages selected; use --page-id, or --database-id with --all",
                file=sys.stderr,
            )
            return 1

        outcome = client.transfer_pages(page_ids)
    for result in outcome.results:
        print(("OK    " if result.success else "FAIL  ") + result.message)
    print(outcome.message)
    return 0 if outcome.success else 1


def cmd_list(args: argparse.Namespace, config: Notion2DocsConfig) -> int:
    """List the pages of a database."""
    if not config.notion_database_id:
        print("Error: --database-id or NOTION_DATABASE_ID is required", file=sys.stderr)
        return 1
    with Notion2DocsClient(config) as client:
        _print_pages(client, config.notion_database_id)
    return 0


def cmd_preview(args: argparse.Namespace, config: Notion2DocsConfig) -> int:
    """Print the text a page would produce, without touching any document."""
    with Notion2DocsClient(config) as client:
        buffer = client.preview_page(args.page)
    sys.stdout.write(buffer.plain_text())
    return 0


def cmd_clear(args: argparse.Namespace, config: Notion2DocsConfig) -> int:
    """Empty the destination document."""
    if not config.google_doc_id:
        print("Error: --doc-id or GOOGLE_DOC_ID is required", file=sys.stderr)
        return 1
    if not args.yes:
        print(
            f"Refusing to clear document {config.google_doc_id} without --yes",
            file=sys.stderr,
        )
        return 1
    with Notion2DocsClient(config, interactive_auth=args.interactive) as client:
        removed = client.clear_document()
    print(f"Removed {removed} characters from document {config.google_doc_id}")
    return 0


def cmd_auth(args: argparse.Namespace, config: Notion2DocsConfig) -> int:
    """Run the Google consent flow and store the credentials."""
    authorize(config, port=args.port, open_browser=not args.no_browser)
    print(f"Google credentials saved to {config.google_credentials_path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notion2docs",
        description="Copy Notion pages into a Google Docs document",
    )
    subparsers = parser.add_subparsers(dest="cmd", required=True)

    p_transfer = subparsers.add_parser("transfer", help="Transfer pages into the document")
    p_transfer.add_argument(
        "--page-id", action="append", help="Page to transfer (repeatable)"
    )
    p_transfer.add_argument("--database-id", help="Database whose pages to transfer")
    p_transfer.add_argument(
        "--all", action="store_true", help="Transfer every page of the database"
    )
    p_transfer.add_argument(
        "--fetch-child-db",
        action="store_true",
        help="Also transfer the pages of databases linked inside each page",
    )
    p_transfer.add_argument(
        "--mode",
        choices=["batch", "eager"],
        help="One batchUpdate per page (batch) or per top-level block (eager)",
    )
    p_transfer.add_argument("--doc-id", help="Destination Google Docs document ID")
    p_transfer.add_argument(
        "--interactive",
        action="store_true",
        help="Open the Google consent screen if no credentials are stored",
    )

    p_list = subparsers.add_parser("list", help="List the pages of a database")
    p_list.add_argument("--database-id", help="Database to list")

    p_preview = subparsers.add_parser("preview", help="Print the compiled text of a page")
    p_preview.add_argument("page", help="Page ID")

    p_clear = subparsers.add_parser("clear", help="Delete the whole document body")
    p_clear.add_argument("--doc-id", help="Document to clear")
    p_clear.add_argument("--yes", action="store_true", help="Confirm the deletion")
    p_clear.add_argument("--interactive", action="store_true", help=argparse.SUPPRESS)

    p_auth = subparsers.add_parser("auth", help="Authorize access to Google Docs")
    p_auth.add_argument("--port", type=int, default=0, help="Local redirect port")
    p_auth.add_argument(
        "--no-browser", action="store_true", help="Print the consent URL instead"
    )

    return parser


HANDLERS = {
    "transfer": cmd_transfer,
    "list": cmd_list,
    "preview": cmd_preview,
    "clear": cmd_clear,
    "auth": cmd_auth,
}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.  Returns the process exit code."""
    load_dotenv()
    args = build_parser().parse_args(argv)
    try:
        config = build_config(args)
        return HANDLERS[args.cmd](args, config)
    except (Notion2DocsError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

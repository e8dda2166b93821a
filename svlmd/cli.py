"""Command line for initialising the project and syncing version metadata."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

import semver

from svlmd.changelog import (
    new_version_page,
    update_changelog,
    version_index_page,
    version_page_title,
)
from svlmd.file_manager import (
    CONFIG_FILE,
    ConfigNotFoundError,
    FileManager,
    detect_root,
)
from svlmd.gitstatus import GitError
from svlmd.pages import LogseqPage

Prompt = Callable[[str], str]


def _ask(text: str) -> str:
    return input(f"{text}: ")


def init_config(root: str | Path, prompt: Optional[Prompt] = None) -> None:
    """Ask for the contributor's name and write it to the configuration file."""
    ask = prompt or _ask
    config_path = Path(root) / CONFIG_FILE
    if config_path.exists():
        print(f"{CONFIG_FILE} already exists. Overwriting...")

    try:
        name = ""
        while not name:
            name = ask("Enter your name").strip()
    except EOFError as exc:
        raise RuntimeError("Failed to get contributor name") from exc

    with open(config_path, "w", encoding="utf-8") as handle:
        json.dump({"contributor": name}, handle, indent=2, ensure_ascii=False)
    print("Initialized config.")


def init(root: str | Path, prompt: Optional[Prompt] = None) -> FileManager:
    """Create the configuration if needed and make sure the contributor has a page."""
    root = Path(root)
    if not (root / CONFIG_FILE).exists():
        print("Config not found. Creating...")
        init_config(root, prompt)
        print()

    file_manager = FileManager.load(root)
    if not file_manager.logseq_page_exists(file_manager.contributor_name):
        file_manager.write_logseq_page(
            LogseqPage(
                file_manager.contributor_name,
                [
                    ("icon", "🙂"),
                    ("exclude-from-graph-view", "true"),
                    ("tags", "Author"),
                ],
                [],
            )
        )
    return file_manager


def sync_version(
    file_manager: FileManager, verbose: bool = False, today: Optional[date] = None
) -> None:
    """Record the staged page changes on the page of the current version."""
    version_path = file_manager.root / "version.txt"
    if not version_path.exists():
        raise FileNotFoundError("version.txt not found")

    first_line = version_path.read_text(encoding="utf-8").split("\n", 1)[0]
    if first_line.endswith("\r"):
        first_line = first_line[:-1]
    try:
        version = semver.Version.parse(first_line)
    except ValueError as exc:
        raise ValueError("Failed to parse version") from exc

    if verbose:
        print(f"Found version: {version}")

    title = version_page_title(version)
    changed = file_manager.get_changed_pages()

    if verbose:
        for marker, titles in (
            ("+", changed.new),
            ("*", changed.modified),
            ("-", changed.deleted),
        ):
            for page_title in titles:
                print(f"{marker} {page_title}")

    if not file_manager.logseq_page_exists(title):
        released = today or datetime.now(timezone.utc).date()
        file_manager.write_logseq_page(
            new_version_page(title, released.strftime("%Y-%m-%d"))
        )

    page = file_manager.read_logseq_page(title)
    page.contents = update_changelog(page.contents, version, changed)
    file_manager.write_logseq_page(page)
    file_manager.write_logseq_page(version_index_page())


def sync_command(
    file_manager: FileManager, version: bool = False, verbose: bool = False
) -> None:
    """Run the sync command; version metadata is always synced."""
    sync_version(file_manager, verbose)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="svlmd")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("init", help="Initialize SVLMD with contributor information")
    sync = commands.add_parser("sync", help="Sync database")
    sync.add_argument(
        "-V", "--version", action="store_true", help="Sync the version metadata"
    )
    sync.add_argument("-v", "--verbose", action="store_true", help="Verbose output mode")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line; return the exit status."""
    args = _parser().parse_args(argv)
    try:
        root = detect_root()
        if args.command == "init":
            init_config(root)
            init(root)
            return 0
        file_manager = init(root)
        sync_command(file_manager, args.version, args.verbose)
    except (OSError, ValueError, RuntimeError, GitError, ConfigNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
"""Version pages and the per-version list of changed pages."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence, Union

import semver

from svlmd.file_manager import ChangedPages
from svlmd.pages import LogseqPage

SUMMARY_HEADING = "# Summary"
CHANGED_PAGES_HEADING = "# Changed Pages"
VERSION_ENTRY_PREFIX = "## [["
ADDED_HEADING = "### Added"
MODIFIED_HEADING = "### Modified"
DELETED_HEADING = "### Deleted"
VERSION_INDENT = 1
SECTION_INDENT = 2
PAGE_INDENT = 3

Entry = tuple[str, int]
VersionLike = Union[semver.Version, str]


def _as_version(version: VersionLike) -> semver.Version:
    if isinstance(version, semver.Version):
        return version
    return semver.Version.parse(str(version))


def version_page_title(version: VersionLike) -> str:
    """Return the page title for a version: major.minor.patch only."""
    parsed = _as_version(version)
    return f"{parsed.major}.{parsed.minor}.{parsed.patch}"


def new_version_page(title: str, released_date: str) -> LogseqPage:
    """Return a fresh version page with its summary and changed-pages sections."""
    return LogseqPage(
        title,
        [("tags", "Version"), ("released-date", released_date)],
        [(SUMMARY_HEADING, 0), ("", 0), (CHANGED_PAGES_HEADING, 0)],
    )


def version_index_page() -> LogseqPage:
    """Return the page that collects all version pages."""
    return LogseqPage(
        "Version",
        [("icon", "🏷️"), ("exclude-from-graph-view", "true")],
        [],
    )


def _find(
    entries: Sequence[Entry], predicate: Callable[[str, int], bool], start: int = 0
) -> Optional[int]:
    return next(
        (
            position
            for position, (line, indent) in enumerate(entries[start:], start)
            if predicate(line, indent)
        ),
        None,
    )


def _is_version_entry(line: str, indent: int) -> bool:
    return line.startswith(VERSION_ENTRY_PREFIX) and indent == VERSION_INDENT


def _heading_at(entries: Sequence[Entry], label: str) -> Optional[int]:
    return _find(entries, lambda line, indent: indent == SECTION_INDENT and line == label)


def _either(first: Optional[int], second: Optional[int]) -> Optional[int]:
    return first if first is not None else second


def _carried(
    existing: Sequence[Entry], start: Optional[int], end: Optional[int]
) -> list[str]:
    """Page links from ``existing`` that also appear between ``start`` and ``end``."""
    if start is None or end is None:
        return []
    section = {line for line, _ in existing[start:end]}
    return [
        line
        for line, indent in existing
        if indent == PAGE_INDENT and line.startswith("[[") and line in section
    ]


def _merge(carried: Iterable[str], titles: Iterable[str]) -> list[str]:
    return sorted(set(carried) | {f"[[{title}]]" for title in titles})


def update_changelog(
    contents: Sequence[Entry], version: VersionLike, changed: ChangedPages
) -> list[Entry]:
    """Return ``contents`` with the entry for ``version`` merged with ``changed``.

    An entry for the same version at the top of the changed-pages section is
    replaced; its links are carried into the new entry.
    """
    contents = list(contents)
    heading = f"## [[{_as_version(version)}]]"

    changed_at = _find(contents, lambda line, _: line == CHANGED_PAGES_HEADING)
    if changed_at is None:
        changed_at = 0

    existing: list[Entry] = []
    latest = _find(contents, _is_version_entry, changed_at)
    if latest is not None:
        following = _find(contents, _is_version_entry, latest + 1)
        end = len(contents) if following is None else following
        if contents[latest][0] == heading:
            existing = [
                (line, indent)
                for line, indent in contents[latest:end]
                if line.startswith("### ") or line.startswith("[[")
            ]
            del contents[latest:end]

    entries: list[Entry] = [(heading, VERSION_INDENT)]

    if changed.new or changed.modified or changed.deleted:
        added_at = _heading_at(existing, ADDED_HEADING)
        modified_at = _heading_at(existing, MODIFIED_HEADING)
        deleted_at = _heading_at(existing, DELETED_HEADING)
        version_level = _find(existing, lambda _, indent: indent == VERSION_INDENT)

        sections = [
            (
                ADDED_HEADING,
                _carried(existing, added_at, _either(modified_at, deleted_at)),
                changed.new,
            ),
            (
                MODIFIED_HEADING,
                _carried(existing, modified_at, _either(deleted_at, version_level)),
                changed.modified,
            ),
            (
                DELETED_HEADING,
                _carried(existing, deleted_at, _either(version_level, len(existing))),
                changed.deleted,
            ),
        ]
        for label, carried, titles in sections:
            links = _merge(carried, titles)
            if links:
                entries.append((label, SECTION_INDENT))
                entries.extend((link, PAGE_INDENT) for link in links)

    insert_at = changed_at + 1
    contents[insert_at:insert_at] = entries
    return contents
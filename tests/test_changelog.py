import pytest
import semver

from svlmd.changelog import (
    new_version_page,
    update_changelog,
    version_index_page,
    version_page_title,
)
from svlmd.file_manager import ChangedPages

FRESH = [("# Summary", 0), ("", 0), ("# Changed Pages", 0)]


def test_version_page_title_drops_prerelease_and_build():
    version = semver.Version.parse("1.2.3-rc.1+build.5")
    assert version_page_title(version) == "1.2.3"


def test_version_page_title_accepts_string():
    assert version_page_title("4.5.6") == "4.5.6"


def test_version_page_title_rejects_invalid():
    with pytest.raises(ValueError):
        version_page_title("not-a-version")


def test_new_version_page_layout():
    page = new_version_page("1.0.0", "2024-03-01")
    assert page.title == "1.0.0"
    assert page.properties == [("tags", "Version"), ("released-date", "2024-03-01")]
    assert page.contents == FRESH


def test_version_index_page():
    page = version_index_page()
    assert page.title == "Version"
    assert page.properties == [("icon", "🏷️"), ("exclude-from-graph-view", "true")]
    assert page.contents == []


def test_fresh_page_gets_sorted_added_section():
    result = update_changelog(FRESH, "1.0.0", ChangedPages(new=["B", "A", "A"]))
    assert result == FRESH + [
        ("## [[1.0.0]]", 1),
        ("### Added", 2),
        ("[[A]]", 3),
        ("[[B]]", 3),
    ]


def test_input_is_not_mutated():
    contents = list(FRESH)
    update_changelog(contents, "1.0.0", ChangedPages(new=["A"]))
    assert contents == FRESH


def test_all_sections_in_order():
    changed = ChangedPages(new=["N"], modified=["M"], deleted=["D"])
    result = update_changelog(FRESH, "2.0.0", changed)
    labels = [line for line, indent in result if indent == 2]
    assert labels == ["### Added", "### Modified", "### Deleted"]
    assert ("[[D]]", 3) in result
    assert result.index(("[[D]]", 3)) > result.index(("### Deleted", 2))


def test_no_changes_gives_bare_version_entry():
    result = update_changelog(FRESH, "1.0.0", ChangedPages())
    assert result == FRESH + [("## [[1.0.0]]", 1)]


def test_same_version_entry_is_merged():
    contents = FRESH + [
        ("## [[1.0.0]]", 1),
        ("### Added", 2),
        ("[[A]]", 3),
        ("### Deleted", 2),
        ("[[D]]", 3),
    ]
    result = update_changelog(contents, "1.0.0", ChangedPages(new=["B"]))
    assert result == FRESH + [
        ("## [[1.0.0]]", 1),
        ("### Added", 2),
        ("[[A]]", 3),
        ("[[B]]", 3),
        ("### Deleted", 2),
        ("[[D]]", 3),
    ]


def test_repeated_update_is_stable():
    changed = ChangedPages(new=["A"], deleted=["D"])
    once = update_changelog(FRESH, "1.0.0", changed)
    twice = update_changelog(once, "1.0.0", changed)
    assert twice == once


def test_older_version_entry_is_kept_below():
    older = [("## [[0.9.0]]", 1), ("### Added", 2), ("[[Old]]", 3)]
    result = update_changelog(FRESH + older, "1.0.0", ChangedPages(new=["New"]))
    assert result[-3:] == older
    assert result.index(("## [[1.0.0]]", 1)) < result.index(("## [[0.9.0]]", 1))


def test_prerelease_version_in_heading():
    result = update_changelog(FRESH, semver.Version.parse("1.0.0-rc.1"), ChangedPages())
    assert result[-1] == ("## [[1.0.0-rc.1]]", 1)


def test_missing_heading_inserts_after_first_line():
    contents = [("intro", 0), ("outro", 0)]
    result = update_changelog(contents, "1.0.0", ChangedPages())
    assert result == [("intro", 0), ("## [[1.0.0]]", 1), ("outro", 0)]
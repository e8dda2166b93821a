"""Project root discovery, configuration and page storage."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path

from svlmd.gitstatus import ChangeKind, Repository
from svlmd.pages import LogseqPage, title_to_filename

CONFIG_FILE = ".svlmd"
PAGES_DIR = "pages"
_PAGE_PREFIX = PAGES_DIR + "/"
_PAGE_SUFFIX = ".md"


class ConfigNotFoundError(Exception):
    """Raised when the project root or its configuration cannot be found."""

    def __init__(self, message: str = "Config not found"):
        super().__init__(message)


@dataclass
class ChangedPages:
    """Page titles staged as new, modified or deleted."""

    new: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)


def get_executable_path() -> Path:
    """Return the absolute path of the running program."""
    program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return Path(program).resolve()


def _parent(path: Path) -> Path:
    parent = path.parent
    if parent == path:
        raise FileNotFoundError("Failed to get executable directory")
    return parent


def detect_root(executable: str | Path | None = None) -> Path:
    """Find the project root from the location of the executable."""
    exe_path = Path(executable) if executable is not None else get_executable_path()
    exe_dir = _parent(exe_path)
    if exe_dir.name in ("debug", "release"):
        return _parent(_parent(_parent(exe_dir)))
    if (exe_dir / PAGES_DIR).exists():
        return exe_dir
    raise FileNotFoundError(
        "Failed to detect root directory. "
        "Please run svlmd from project root or installation directory."
    )


@dataclass
class FileManager:
    """Reads and writes pages under a project root and reports staged page changes."""

    root: Path
    contributor_name: str

    @classmethod
    def load(cls, root: str | Path | None = None) -> "FileManager":
        """Load the configuration of the project at ``root`` (detected if omitted)."""
        if root is None:
            try:
                root = detect_root()
            except OSError as exc:
                raise ConfigNotFoundError() from exc
        root = Path(root)
        try:
            with open(root / CONFIG_FILE, encoding="utf-8") as handle:
                config = json.load(handle)
        except (OSError, ValueError) as exc:
            raise ConfigNotFoundError() from exc
        contributor = config.get("contributor") if isinstance(config, dict) else None
        return cls(root, contributor if isinstance(contributor, str) else "")

    @property
    def pages_dir(self) -> Path:
        return self.root / PAGES_DIR

    def logseq_page_exists(self, title: str) -> bool:
        return (self.pages_dir / title_to_filename(title)).exists()

    def write_logseq_page(self, page: LogseqPage) -> None:
        page.write_page(self.pages_dir)

    def read_logseq_page(self, title: str) -> LogseqPage:
        return LogseqPage(title).read_page(self.pages_dir)

    def get_changed_pages(self) -> ChangedPages:
        """Return page titles staged in git, grouped by kind of change."""
        changed = ChangedPages()
        buckets = {
            ChangeKind.NEW: changed.new,
            ChangeKind.MODIFIED: changed.modified,
            ChangeKind.DELETED: changed.deleted,
        }
        for path, kind in Repository(self.root).staged_changes():
            if not (path.startswith(_PAGE_PREFIX) and path.endswith(_PAGE_SUFFIX)):
                continue
            bucket = buckets.get(kind)
            if bucket is None:
                continue
            filename = path[len(_PAGE_PREFIX) : len(path) - len(_PAGE_SUFFIX)]
            bucket.append(filename.replace("___", "/"))
        return changed
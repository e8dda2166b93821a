"""Logseq pages: a title, header properties and indented bullet contents."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

PAGE_SUFFIX = ".md"
INDENT = "    "


def title_to_filename(title: str) -> str:
    """Return the file name Logseq uses for a page title."""
    return title.replace("/", "___") + PAGE_SUFFIX


def _text_lines(text: str) -> list[str]:
    """Split text into lines, dropping one trailing newline and any '\\r' ends."""
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def _count_indentation(line: str) -> int:
    spaces = len(line) - len(line.lstrip(" "))
    return spaces // len(INDENT)


@dataclass
class LogseqPage:
    """A Logseq page with header properties and (text, indentation) contents."""

    title: str
    properties: list[tuple[str, str]] = field(default_factory=list)
    contents: list[tuple[str, int]] = field(default_factory=list)

    @classmethod
    def from_plain(
        cls, title: str, properties: list[tuple[str, str]], contents: str
    ) -> "LogseqPage":
        """Build a page from plain text, reading indentation and dropping bullets."""
        parsed = [
            (line.strip().replace("- ", "", 1), _count_indentation(line))
            for line in _text_lines(contents)
        ]
        return cls(title, list(properties), parsed)

    def path_in(self, pages_dir: str | Path) -> Path:
        """Return the path of this page's file inside ``pages_dir``."""
        return Path(pages_dir) / title_to_filename(self.title)

    def write_page(self, pages_dir: str | Path) -> None:
        """Write the page, replacing any existing file."""
        with open(self.path_in(pages_dir), "w", encoding="utf-8", newline="\n") as out:
            for key, value in self.properties:
                out.write(f"{key}:: {value}\n")
            out.write("\n")
            for content, indentation in self.contents:
                if content:
                    out.write(f"{INDENT * indentation}- {content}\n")
                else:
                    out.write("\n")

    def read_page(self, pages_dir: str | Path) -> "LogseqPage":
        """Read the page with this title from ``pages_dir`` and return it."""
        text = self.path_in(pages_dir).read_text(encoding="utf-8")
        lines = _text_lines(text)
        properties_end = next(
            (number for number, line in enumerate(lines) if "::" not in line), 0
        )
        properties = []
        for line in lines[:properties_end]:
            parts = line.split("::")
            properties.append((parts[0], parts[1].strip()))
        contents = "\n".join(lines[properties_end:])
        return LogseqPage.from_plain(self.title, properties, contents)
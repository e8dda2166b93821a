"""Tools for a Git-tracked Logseq knowledge database: pages, config and version changelogs."""

__version__ = "0.1.0"
# svlmd

Command-line tools for a Logseq knowledge database that is kept under Git.
The tools keep a contributor config and an author page for each contributor.
They also record, on a changelog page for each release, the pages that
changed in that release.

## Installation

```
pip install .
```

## Layout

The database root is found from the location of the program being run. The
root is the program's own directory if that directory contains a `pages/`
folder. If the program sits in a directory named `debug` or `release`, the
root is the directory three levels above it. The root holds:

- `pages/`: the Logseq pages. A `/` in a page title is stored as `___` in the
  file name, so `a/b` is stored as `pages/a___b.md`.
- `.svlmd`: a JSON config of the form `{"contributor": "<name>"}`.
- `version.txt`: the current semantic version, on its first line.

## Usage

To set up the contributor config and the contributor's author page, run:

```
svlmd init
```

This asks for your name and asks again while the answer is empty. It then
replaces any existing `.svlmd`. If `pages/<name>.md` does not exist, it is
created with the properties `icon`, `exclude-from-graph-view:: true` and
`tags:: Author`.

To record the version changelog, run one of:

```
svlmd sync
svlmd sync --verbose
```

`sync` works as follows:

1. It reads `version.txt`. It stops with an error if the file is missing or
   does not hold a valid semantic version.
2. It creates the page `MAJOR.MINOR.PATCH` if that page does not exist. The
   new page is tagged `Version` and has `released-date` set to today's UTC
   date. It holds a `# Summary` section and a `# Changed Pages` section.
3. It compares the Git index with `HEAD` to find the staged `pages/*.md`
   files.
4. Directly under `# Changed Pages`, it writes an entry `## [[<full version>]]`
   with the sections `### Added`, `### Modified` and `### Deleted`. Each
   section lists its pages as sorted `[[title]]` links.
5. If the newest entry on the page is already for the same version, `sync`
   merges that entry's links with the new changes and replaces the entry.
6. It rewrites the `Version` page with only its `icon` and
   `exclude-from-graph-view` properties.

`--verbose` (`-v`) prints the version found and each changed page. Added
pages are marked `+`, modified pages `*` and deleted pages `-`. `--version`
(`-V`) is also accepted, but the version is always synced.

Any command other than `init` creates the config first if it is missing.
Errors are printed to standard error as `Error: ...`, and the exit status is
then 1.

## Limits

- Only changes that are staged in the Git index count. Edits that are only
  in the working tree and untracked files are not recorded.
- Renames are not detected. A renamed page shows up as one deleted page and
  one added page.
- A change that only alters the file type is ignored.
- The repository is read directly from `.git`, with both loose and packed
  objects. Git itself is never run.

## Library use

The modules can also be used directly:

- `svlmd.pages.LogseqPage` reads and writes page files. Each page has a title,
  header properties, and contents held as `(text, indentation)` lines.
- `svlmd.file_manager.FileManager.load(root)` loads a project's config.
  `get_changed_pages()` returns a `ChangedPages` with `new`, `modified` and
  `deleted` titles.
- `svlmd.changelog.update_changelog(contents, version, changed)` returns
  updated page contents and does not touch any file.
- `svlmd.gitstatus.Repository(root).staged_changes()` lists the paths whose
  index entry differs from `HEAD`.

## Development

```
pip install -e .[test]
pytest
```
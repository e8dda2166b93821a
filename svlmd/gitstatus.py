"""Staged changes of a git repository: the index compared with HEAD."""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

_OBJECT_TYPES = {1: "commit", 2: "tree", 3: "blob", 4: "tag"}
_OFS_DELTA = 6
_REF_DELTA = 7
_TREE_MODE = 0o40000
_MODE_TYPE_MASK = 0o170000
_MAX_REF_DEPTH = 10


class GitError(Exception):
    """Raised when the repository cannot be opened or read."""


class ChangeKind(Enum):
    """How a path in the index differs from HEAD."""

    NEW = "new"
    MODIFIED = "modified"
    DELETED = "deleted"
    TYPECHANGE = "typechange"


def _decode_path(raw: bytes) -> str:
    return raw.decode("utf-8", "surrogateescape")


def _offset_varint(data: bytes, pos: int) -> tuple[int, int]:
    """Decode git's offset-style varint; return (value, next position)."""
    byte = data[pos]
    pos += 1
    value = byte & 0x7F
    while byte & 0x80:
        byte = data[pos]
        pos += 1
        value = ((value + 1) << 7) | (byte & 0x7F)
    return value, pos


def _size_varint(data: bytes, pos: int) -> tuple[int, int]:
    """Decode a little-endian base-128 varint; return (value, next position)."""
    value = 0
    shift = 0
    while True:
        byte = data[pos]
        pos += 1
        value |= (byte & 0x7F) << shift
        shift += 7
        if not byte & 0x80:
            return value, pos


def _apply_delta(base: bytes, delta: bytes) -> bytes:
    source_size, pos = _size_varint(delta, 0)
    target_size, pos = _size_varint(delta, pos)
    if source_size != len(base):
        raise GitError("delta base size mismatch")
    out = bytearray()
    while pos < len(delta):
        op = delta[pos]
        pos += 1
        if op & 0x80:
            offset = 0
            size = 0
            for shift in range(4):
                if op & (1 << shift):
                    offset |= delta[pos] << (8 * shift)
                    pos += 1
            for shift in range(3):
                if op & (0x10 << shift):
                    size |= delta[pos] << (8 * shift)
                    pos += 1
            out += base[offset : offset + (size or 0x10000)]
        elif op:
            out += delta[pos : pos + op]
            pos += op
        else:
            raise GitError("invalid delta instruction")
    if len(out) != target_size:
        raise GitError("delta result size mismatch")
    return bytes(out)


def _inflate(data: bytes, pos: int) -> bytes:
    return zlib.decompressobj().decompress(memoryview(data)[pos:])


@dataclass
class _Pack:
    data: bytes
    offsets: dict[str, int]

    @classmethod
    def load(cls, idx_path: Path) -> "_Pack":
        idx = idx_path.read_bytes()
        data = idx_path.with_suffix(".pack").read_bytes()
        if data[:4] != b"PACK":
            raise GitError(f"bad pack file: {idx_path.with_suffix('.pack')}")
        return cls(data, _parse_pack_index(idx))

    def read(self, offset: int, repo: "Repository") -> tuple[str, bytes]:
        data = self.data
        byte = data[offset]
        pos = offset + 1
        kind = (byte >> 4) & 7
        shift = 4
        while byte & 0x80:
            byte = data[pos]
            pos += 1
            shift += 7
        if kind == _OFS_DELTA:
            distance, pos = _offset_varint(data, pos)
            base_type, base = self.read(offset - distance, repo)
            return base_type, _apply_delta(base, _inflate(data, pos))
        if kind == _REF_DELTA:
            base_oid = data[pos : pos + 20].hex()
            base_type, base = repo._read_object(base_oid)
            return base_type, _apply_delta(base, _inflate(data, pos + 20))
        if kind not in _OBJECT_TYPES:
            raise GitError(f"unknown pack object type {kind}")
        return _OBJECT_TYPES[kind], _inflate(data, pos)


def _parse_pack_index(idx: bytes) -> dict[str, int]:
    if idx[:4] == b"\xfftOc":
        (version,) = struct.unpack_from(">I", idx, 4)
        if version != 2:
            raise GitError(f"unsupported pack index version {version}")
        count = struct.unpack_from(">256I", idx, 8)[255]
        names_at = 8 + 1024
        offsets_at = names_at + count * 20 + count * 4
        large_at = offsets_at + count * 4
        offsets = {}
        for number in range(count):
            oid = idx[names_at + number * 20 : names_at + (number + 1) * 20].hex()
            (offset,) = struct.unpack_from(">I", idx, offsets_at + number * 4)
            if offset & 0x80000000:
                (offset,) = struct.unpack_from(
                    ">Q", idx, large_at + (offset & 0x7FFFFFFF) * 8
                )
            offsets[oid] = offset
        return offsets
    count = struct.unpack_from(">256I", idx, 0)[255]
    offsets = {}
    for number in range(count):
        at = 1024 + number * 24
        (offset,) = struct.unpack_from(">I", idx, at)
        offsets[idx[at + 4 : at + 24].hex()] = offset
    return offsets


def _find_git_dir(root: Path) -> Path:
    dotgit = root / ".git"
    if dotgit.is_dir():
        return dotgit
    if dotgit.is_file():
        text = dotgit.read_text(encoding="utf-8").strip()
        if text.startswith("gitdir:"):
            target = Path(text[len("gitdir:") :].strip())
            if not target.is_absolute():
                target = root / target
            if target.is_dir():
                return target
    if (root / "HEAD").is_file() and (root / "objects").is_dir():
        return root
    raise GitError(f"Failed to open git repository at {root}")


def _common_dir(git_dir: Path) -> Path:
    marker = git_dir / "commondir"
    if marker.is_file():
        common = Path(marker.read_text(encoding="utf-8").strip())
        return common if common.is_absolute() else git_dir / common
    return git_dir


class Repository:
    """A git repository on disk, read without any external tools."""

    def __init__(self, root: str | Path):
        self.workdir = Path(root)
        self.git_dir = _find_git_dir(self.workdir)
        self.common_dir = _common_dir(self.git_dir)
        self._packs: list[_Pack] | None = None

    def _load_packs(self) -> list[_Pack]:
        if self._packs is None:
            pack_dir = self.common_dir / "objects" / "pack"
            self._packs = [_Pack.load(idx) for idx in sorted(pack_dir.glob("pack-*.idx"))]
        return self._packs

    def _read_object(self, oid: str) -> tuple[str, bytes]:
        loose = self.common_dir / "objects" / oid[:2] / oid[2:]
        try:
            if loose.is_file():
                raw = zlib.decompress(loose.read_bytes())
                header, _, body = raw.partition(b"\0")
                kind, _, _ = header.decode("ascii").partition(" ")
                return kind, body
            for pack in self._load_packs():
                if oid in pack.offsets:
                    return pack.read(pack.offsets[oid], self)
        except (zlib.error, struct.error, IndexError, UnicodeDecodeError) as exc:
            raise GitError(f"corrupt object {oid}") from exc
        raise GitError(f"object {oid} not found")

    def _read_ref(self, name: str) -> str | None:
        for base in (self.git_dir, self.common_dir):
            path = base / name
            if path.is_file():
                return path.read_text(encoding="utf-8").strip()
        packed = self.common_dir / "packed-refs"
        if packed.is_file():
            for line in packed.read_text(encoding="utf-8").splitlines():
                if not line or line.startswith(("#", "^")):
                    continue
                oid, _, ref = line.partition(" ")
                if ref.strip() == name:
                    return oid
        return None

    def _head_commit(self) -> str | None:
        value: str | None = (self.git_dir / "HEAD").read_text(encoding="utf-8").strip()
        for _ in range(_MAX_REF_DEPTH):
            if value is None or not value.startswith("ref:"):
                return value
            value = self._read_ref(value[len("ref:") :].strip())
        raise GitError("symbolic reference loop in HEAD")

    def _walk_tree(self, oid: str, prefix: str, entries: dict[str, tuple[int, str]]) -> None:
        kind, data = self._read_object(oid)
        if kind != "tree":
            raise GitError(f"object {oid} is a {kind}, not a tree")
        pos = 0
        try:
            while pos < len(data):
                space = data.index(b" ", pos)
                mode = int(data[pos:space], 8)
                nul = data.index(b"\0", space)
                name = _decode_path(data[space + 1 : nul])
                child = data[nul + 1 : nul + 21].hex()
                pos = nul + 21
                if mode == _TREE_MODE:
                    self._walk_tree(child, f"{prefix}{name}/", entries)
                else:
                    entries[prefix + name] = (mode, child)
        except ValueError as exc:
            raise GitError(f"corrupt tree {oid}") from exc

    def head_tree_entries(self) -> dict[str, tuple[int, str]]:
        """Map each file path in HEAD's tree to (mode, object id); empty if unborn."""
        commit = self._head_commit()
        if commit is None:
            return {}
        kind, data = self._read_object(commit)
        if kind != "commit":
            raise GitError(f"HEAD points to a {kind}, not a commit")
        first_line = data.split(b"\n", 1)[0].decode("ascii", "replace")
        if not first_line.startswith("tree "):
            raise GitError(f"commit {commit} has no tree")
        entries: dict[str, tuple[int, str]] = {}
        self._walk_tree(first_line[len("tree ") :].strip(), "", entries)
        return entries

    def index_entries(self) -> dict[str, tuple[int, str]]:
        """Map each staged path to (mode, object id), skipping conflicts and intents."""
        try:
            data = (self.git_dir / "index").read_bytes()
        except FileNotFoundError:
            return {}
        if data[:4] != b"DIRC":
            raise GitError("bad index signature")
        try:
            return self._parse_index(data)
        except (struct.error, ValueError, IndexError) as exc:
            raise GitError("corrupt index") from exc

    @staticmethod
    def _parse_index(data: bytes) -> dict[str, tuple[int, str]]:
        version, count = struct.unpack_from(">II", data, 4)
        if version not in (2, 3, 4):
            raise GitError(f"unsupported index version {version}")
        entries: dict[str, tuple[int, str]] = {}
        pos = 12
        previous = b""
        for _ in range(count):
            (mode,) = struct.unpack_from(">I", data, pos + 24)
            oid = data[pos + 40 : pos + 60].hex()
            (flags,) = struct.unpack_from(">H", data, pos + 60)
            cursor = pos + 62
            extended = 0
            if flags & 0x4000:
                if version < 3:
                    raise GitError("extended index entry in version 2 index")
                (extended,) = struct.unpack_from(">H", data, cursor)
                cursor += 2
            if version == 4:
                strip, cursor = _offset_varint(data, cursor)
                nul = data.index(b"\0", cursor)
                name = previous[: len(previous) - strip] + data[cursor:nul]
                pos = nul + 1
            else:
                nul = data.index(b"\0", cursor)
                name = data[cursor:nul]
                pos += (nul - pos + 8) & ~7
            previous = name
            stage = (flags >> 12) & 3
            intent_to_add = extended & 0x2000
            if stage or intent_to_add:
                continue
            entries[_decode_path(name)] = (mode, oid)
        return entries

    def staged_changes(self) -> list[tuple[str, ChangeKind]]:
        """Return (path, kind) for every path whose index entry differs from HEAD."""
        head = self.head_tree_entries()
        index = self.index_entries()
        changes = []
        for path in sorted(head.keys() | index.keys()):
            old = head.get(path)
            new = index.get(path)
            if old is None:
                changes.append((path, ChangeKind.NEW))
            elif new is None:
                changes.append((path, ChangeKind.DELETED))
            elif old == new:
                continue
            elif old[0] & _MODE_TYPE_MASK != new[0] & _MODE_TYPE_MASK:
                changes.append((path, ChangeKind.TYPECHANGE))
            else:
                changes.append((path, ChangeKind.MODIFIED))
        return changes
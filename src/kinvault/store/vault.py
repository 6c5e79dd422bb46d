"""Markdown vault record store.

A vault is a directory tree of ``.md`` notes. Structured fields live in a
YAML frontmatter block fenced by ``---`` lines at the top of the note;
everything after the closing fence is the body and is preserved verbatim.
"""

from __future__ import annotations

import copy
import re
from pathlib import Path
from typing import Any

import structlog
import yaml

from kinvault.errors import RecordStoreError
from kinvault.fs import atomic_write_text, unique_path
from kinvault.models.handle import RecordHandle
from kinvault.store.base import FieldMap, FieldMutator

logger = structlog.get_logger(__name__)

FENCE = "---"
_UNSAFE_FILENAME = re.compile(r'[\\/:*?"<>|#^\[\]]')


def split_frontmatter(text: str) -> tuple[FieldMap, str]:
    """Split a note into (frontmatter fields, body).

    Notes without a frontmatter block yield an empty field map and the
    whole text as body.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != FENCE:
        return {}, text
    for i in range(1, len(lines)):
        if lines[i].strip() == FENCE:
            raw = "".join(lines[1:i])
            body = "".join(lines[i + 1:])
            data = yaml.safe_load(raw) if raw.strip() else {}
            if not isinstance(data, dict):
                raise ValueError("frontmatter is not a mapping")
            return data, body
    return {}, text


def render_note(fields: FieldMap, body: str) -> str:
    if not fields:
        return body
    dumped = yaml.safe_dump(fields, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"{FENCE}\n{dumped}{FENCE}\n{body}"


def safe_filename(name: str) -> str:
    cleaned = _UNSAFE_FILENAME.sub("", name).strip().strip(".")
    return re.sub(r"\s+", " ", cleaned) or "Unnamed"


class MarkdownVault:
    """Record store over a directory of Markdown notes.

    ``kind`` matches the frontmatter ``type`` key. Notes without a
    ``type`` count as persons when they carry an ``id``.
    """

    def __init__(self, root: Path | str, people_folder: str = "People") -> None:
        self.root = Path(root)
        self.people_folder = people_folder

    # ------------------------------------------------------------------
    # paths
    # ------------------------------------------------------------------

    def absolute_path(self, handle: RecordHandle) -> Path:
        return self.root / handle.path

    def handle_for(self, path: Path | str) -> RecordHandle:
        """Handle for a note given an absolute or vault-relative path."""
        p = Path(path)
        if p.is_absolute():
            try:
                p = p.resolve().relative_to(self.root.resolve())
            except ValueError as e:
                raise RecordStoreError(f"{path} is outside the vault {self.root}") from e
        return RecordHandle(p.as_posix())

    def resolve_path(self, handle: RecordHandle) -> str:
        return handle.path

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def _iter_notes(self):
        for path in sorted(self.root.rglob("*.md")):
            rel = path.relative_to(self.root)
            if any(part.startswith(".") for part in rel.parts):
                continue
            yield path, RecordHandle(rel.as_posix())

    def _load(self, handle: RecordHandle) -> tuple[FieldMap, str]:
        path = self.absolute_path(handle)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise RecordStoreError(f"cannot read {handle.path}: {e}") from e
        try:
            return split_frontmatter(text)
        except (yaml.YAMLError, ValueError) as e:
            raise RecordStoreError(f"invalid frontmatter in {handle.path}: {e}") from e

    def list_records(self, kind: str = "person") -> list[RecordHandle]:
        handles: list[RecordHandle] = []
        for _path, handle in self._iter_notes():
            try:
                fields, _ = self._load(handle)
            except RecordStoreError as e:
                logger.warning("vault.note_unreadable", path=handle.path, error=str(e))
                continue
            note_type = fields.get("type")
            if note_type == kind or (note_type is None and kind == "person" and "id" in fields):
                handles.append(handle)
        return handles

    def read_fields(self, handle: RecordHandle) -> FieldMap:
        fields, _ = self._load(handle)
        return dict(fields)

    def resolve_display_name(self, handle: RecordHandle) -> str:
        try:
            fields, _ = self._load(handle)
        except RecordStoreError:
            return handle.stem
        name = fields.get("name")
        return str(name) if name else handle.stem

    # ------------------------------------------------------------------
    # writes
    # ------------------------------------------------------------------

    async def write_fields(self, handle: RecordHandle, mutator: FieldMutator) -> None:
        fields, body = self._load(handle)
        before = copy.deepcopy(fields)
        mutator(fields)
        if fields == before:
            logger.debug("vault.write_skipped", path=handle.path)
            return
        try:
            atomic_write_text(self.absolute_path(handle), render_note(fields, body))
        except OSError as e:
            raise RecordStoreError(f"cannot write {handle.path}: {e}") from e
        logger.debug("vault.write", path=handle.path)

    async def create_record(
        self,
        kind: str,
        name: str,
        fields: FieldMap,
        folder: str | None = None,
        body: str = "",
    ) -> RecordHandle:
        target_dir = self.root / (folder if folder is not None else self.people_folder)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = unique_path(target_dir, safe_filename(name))

        data: dict[str, Any] = {"type": kind}
        data.update(fields)
        try:
            atomic_write_text(path, render_note(data, body))
        except OSError as e:
            raise RecordStoreError(f"cannot create {path}: {e}") from e

        handle = RecordHandle(path.relative_to(self.root).as_posix())
        logger.info("vault.created", path=handle.path, kind=kind)
        return handle

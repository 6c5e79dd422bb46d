"""Bidirectional relationship edits over the record store.

Every relationship is written on both ends: the child gets its
``father``/``mother`` pair, the parent gets the child appended to its
``children`` pair, spouses list each other. Each pair keeps a display
wikilink next to the id; the id is authoritative.

Writes are issued one document at a time. A failed write is logged and
reported on the :class:`MutationResult`; documents already written are
left as they are (no rollback).
"""

from __future__ import annotations

import warnings
from collections.abc import Callable

import structlog
from pydantic import BaseModel, Field

from kinvault.config import VaultConfig
from kinvault.errors import MissingIdentity, RecordStoreError, RoleSexMismatch, WriteFailure
from kinvault.graph.cache import FamilyGraph
from kinvault.models.handle import RecordHandle
from kinvault.models.person import ParentRole, Sex, make_wikilink, parse_wikilink
from kinvault.relationships.history import (
    ChangeListener,
    RelationshipChange,
    RelationshipChangeType,
)
from kinvault.store.base import FieldMap, RecordStore
from kinvault.store.mapping import (
    ALL_LINK_PAIRS,
    CHILDREN,
    SPOUSE,
    FieldMapper,
    LinkPair,
    as_scalar,
    parent_pair,
    raw_list,
)

logger = structlog.get_logger(__name__)


class MutationResult(BaseModel):
    """Outcome of one relationship operation."""

    operation: str
    written: list[str] = Field(default_factory=list)  # paths whose fields changed
    failures: list[WriteFailure] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class _Party:
    """One document taking part in an operation, read once up front."""

    def __init__(self, store: RecordStore, mapper: FieldMapper, handle: RecordHandle) -> None:
        self.handle = handle
        self.fields = store.read_fields(handle)
        self.id = as_scalar(mapper.get(self.fields, "id"))
        self.name = store.resolve_display_name(handle)
        self.sex = Sex.parse(mapper.get(self.fields, "sex") or mapper.get(self.fields, "gender"))
        self.link = make_wikilink(handle.stem, self.name)
        self.path = store.resolve_path(handle)


class RelationshipMutator:
    """Adds parent, spouse and child links and propagates renames."""

    def __init__(
        self,
        store: RecordStore,
        graph: FamilyGraph | None = None,
        vault_config: VaultConfig | None = None,
        mapper: FieldMapper | None = None,
    ) -> None:
        self.store = store
        self.mapper = mapper or FieldMapper(vault_config)
        self.graph = graph or FamilyGraph(store, mapper=self.mapper)
        self._listeners: list[ChangeListener] = []

    # ------------------------------------------------------------------
    # notifications
    # ------------------------------------------------------------------

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, change: RelationshipChange) -> None:
        for listener in list(self._listeners):
            listener(change)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _parties(self, *handles: RecordHandle) -> list[_Party]:
        parties = [_Party(self.store, self.mapper, h) for h in handles]
        missing = [p.path for p in parties if not p.id]
        if missing:
            raise MissingIdentity(paths=missing)
        ids = [p.id for p in parties]
        if len(set(ids)) != len(ids):
            raise ValueError(f"cannot link a person to themselves ({ids[0]})")
        return parties

    async def _write(
        self,
        result: MutationResult,
        handle: RecordHandle,
        edit: Callable[[FieldMap], bool],
    ) -> None:
        """Apply one document edit; a store error becomes a WriteFailure."""
        changed = False

        def apply(fields: FieldMap) -> None:
            nonlocal changed
            changed = edit(fields)

        path = self.store.resolve_path(handle)
        try:
            await self.store.write_fields(handle, apply)
        except (RecordStoreError, OSError) as e:
            logger.error("mutator.write_failed", operation=result.operation, path=path, error=str(e))
            result.failures.append(WriteFailure(path=path, error=str(e)))
            return
        if changed:
            result.written.append(path)

    async def _write_pair(
        self,
        result: MutationResult,
        first: tuple[RecordHandle, Callable[[FieldMap], bool]],
        second: tuple[RecordHandle, Callable[[FieldMap], bool]],
    ) -> None:
        """Both halves of one relationship.

        The second write is attempted even if the first failed; nothing is
        compensated.
        """
        await self._write(result, *first)
        await self._write(result, *second)

    def _append(self, pair: LinkPair, link: str, target_id: str) -> Callable[[FieldMap], bool]:
        return lambda fields: self.mapper.append_multi(fields, pair, link, target_id)

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    async def add_parent(
        self,
        child: RecordHandle,
        parent: RecordHandle,
        role: ParentRole,
    ) -> MutationResult:
        """Set ``parent`` as the child's father or mother and list the child on the parent.

        Raises:
            MissingIdentity: either record has no id; nothing is written.
        """
        return await self._link_parent(child, parent, ParentRole(role), check_sex=True)

    async def add_child(self, parent: RecordHandle, child: RecordHandle) -> MutationResult:
        """Like :meth:`add_parent` with the role taken from the parent's sex.

        Female parents become the mother; any other value, unknown
        included, makes them the father.
        """
        return await self._link_parent(
            child, parent, None, check_sex=False, change_type=RelationshipChangeType.ADD_CHILD
        )

    async def _link_parent(
        self,
        child: RecordHandle,
        parent: RecordHandle,
        role: ParentRole | None,
        *,
        check_sex: bool,
        change_type: RelationshipChangeType | None = None,
    ) -> MutationResult:
        c, p = self._parties(child, parent)
        if role is None:
            role = ParentRole.for_parent_sex(p.sex)
        result = MutationResult(operation=f"add_{role.value}")

        if check_sex and p.sex in (Sex.MALE, Sex.FEMALE) and p.sex is not role.expected_sex:
            message = f"{p.name} is recorded as {p.sex.value} but is being added as {role.value} of {c.name}"
            warnings.warn(message, RoleSexMismatch, stacklevel=3)
            result.warnings.append(message)
            logger.warning("mutator.role_sex_mismatch", parent=p.path, child=c.path, role=role.value)

        pair = parent_pair(role)

        def set_parent(fields: FieldMap) -> bool:
            before = (self.mapper.get(fields, pair.link_key), self.mapper.get(fields, pair.id_key))
            replaced = self.mapper.set_single(fields, pair, p.link, p.id)
            if replaced:
                logger.info(
                    "mutator.parent_replaced",
                    child=c.path,
                    role=role.value,
                    previous_id=replaced,
                    new_id=p.id,
                )
            return before != (p.link, p.id)

        await self._write_pair(
            result,
            (child, set_parent),
            (parent, self._append(CHILDREN, c.link, c.id)),
        )
        logger.info("mutator.add_parent", child=c.id, parent=p.id, role=role.value, ok=result.ok)

        if result.ok:
            if change_type is RelationshipChangeType.ADD_CHILD:
                change = RelationshipChange(
                    type=change_type, source_id=p.id, source_name=p.name,
                    target_id=c.id, target_name=c.name, new_value=c.link,
                )
            else:
                change = RelationshipChange(
                    type=RelationshipChangeType(f"add_{role.value}"),
                    source_id=c.id, source_name=c.name,
                    target_id=p.id, target_name=p.name, new_value=p.link,
                )
            self._emit(change)
        return result

    async def add_spouse(self, a: RecordHandle, b: RecordHandle) -> MutationResult:
        """List each person as the other's spouse. Adding an existing spouse is a no-op."""
        pa, pb = self._parties(a, b)
        result = MutationResult(operation="add_spouse")
        await self._write_pair(
            result,
            (a, self._append(SPOUSE, pb.link, pb.id)),
            (b, self._append(SPOUSE, pa.link, pa.id)),
        )
        logger.info("mutator.add_spouse", a=pa.id, b=pb.id, changed=len(result.written), ok=result.ok)
        if result.ok:
            self._emit(RelationshipChange(
                type=RelationshipChangeType.ADD_SPOUSE, source_id=pa.id, source_name=pa.name,
                target_id=pb.id, target_name=pb.name, new_value=pb.link,
            ))
        return result

    async def propagate_rename(
        self,
        person_id: str,
        old_name: str,
        new_name: str,
        new_location: RecordHandle,
    ) -> MutationResult:
        """Rewrite every display link that points at ``person_id``.

        A link is rewritten when the id stored at the same position names
        ``person_id``. If a document's link and id lists have different
        lengths the positions cannot be trusted; then links mentioning
        ``old_name`` are rewritten, and only in pairs whose ids include
        ``person_id``.
        """
        new_link = make_wikilink(new_location.stem, new_name)
        result = MutationResult(operation="rename")

        for handle in self.store.list_records("person"):
            if handle == new_location:
                continue
            try:
                fields = self.store.read_fields(handle)
            except RecordStoreError as e:
                logger.warning("mutator.rename_unreadable", path=handle.path, error=str(e))
                continue
            if as_scalar(self.mapper.get(fields, "id")) == person_id:
                continue
            if not self._rewrite_links(dict(fields), person_id, old_name, new_link):
                continue
            await self._write(
                result,
                handle,
                lambda f: self._rewrite_links(f, person_id, old_name, new_link),
            )

        logger.info(
            "mutator.rename",
            person_id=person_id,
            old_name=old_name,
            new_name=new_name,
            updated=len(result.written),
            ok=result.ok,
        )
        if result.ok and result.written:
            self._emit(RelationshipChange(
                type=RelationshipChangeType.RENAME, source_id=person_id,
                source_name=new_name, new_value=new_link,
            ))
        return result

    def _rewrite_links(self, fields: FieldMap, person_id: str, old_name: str, new_link: str) -> bool:
        changed = False
        for pair in ALL_LINK_PAIRS:
            pair_changed = False
            id_value = self.mapper.get(fields, pair.id_key)
            ids = raw_list(id_value)
            if person_id not in ids:
                continue
            link_value = self.mapper.get(fields, pair.link_key)
            links = raw_list(link_value)

            if len(links) == len(ids):
                targets = [i for i, ident in enumerate(ids) if ident == person_id]
            else:
                targets = [i for i, link in enumerate(links) if _mentions(link, old_name)]

            for i in targets:
                if links[i] != new_link:
                    links[i] = new_link
                    pair_changed = True

            if pair_changed:
                changed = True
                scalar = not isinstance(link_value, list) and len(links) == 1
                self.mapper.set(fields, pair.link_key, links[0] if scalar else links)
        return changed

    async def sync_relationships(self, handle: RecordHandle) -> MutationResult:
        """Make the people this record points at point back at it.

        The record's father and mother get it appended to their children,
        and each spouse gets it appended to their spouses. Ids that do not
        resolve to a record are skipped.
        """
        (me,) = self._parties(handle)
        person = self.mapper.to_person(me.fields, handle)
        result = MutationResult(operation="sync")
        graph = self.graph.ensure_loaded()

        targets: list[tuple[str, LinkPair]] = [
            (pid, CHILDREN) for pid in (person.father_id, person.mother_id) if pid
        ]
        targets += [(sid, SPOUSE) for sid in person.spouse_ids]

        for target_id, pair in targets:
            target = graph.get(target_id)
            if target is None or target.source_location is None:
                logger.debug("mutator.sync_unresolved", person_id=me.id, target_id=target_id)
                continue
            await self._write(result, target.source_location, self._append(pair, me.link, me.id))

        logger.info("mutator.sync", person_id=me.id, updated=len(result.written), ok=result.ok)
        return result


def _mentions(link: str, name: str) -> bool:
    """True when the link's target or label contains ``name``."""
    if not name:
        return False
    parsed = parse_wikilink(link)
    if parsed is None:
        return name in link
    target, label = parsed
    return name in target or name in label

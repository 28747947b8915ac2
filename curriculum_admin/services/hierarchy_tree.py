"""Browsable, editable view of the content hierarchy.

The tree is held as a flat map of nodes keyed by :class:`NodeKey`, each with
a pointer to its parent, plus a separate set of expanded keys.  The nested
structure the console renders is produced on demand by
:meth:`HierarchyTree.project`, which never mutates the tree.

Edits and structural intents (add, delete, continue, reorder) are sent to the
:class:`~curriculum_admin.services.hierarchy_repository.HierarchyRepository`
first; the local map is only updated after the store accepts the change.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable

from curriculum_admin.exceptions import FormValidationError

logger = logging.getLogger(__name__)


class NodeKind(str, Enum):
    SUBJECT = "subject"
    TERM = "term"
    WEEK = "week"
    CHAPTER = "chapter"
    CONTENT = "content"


CHILD_KIND: dict[NodeKind, NodeKind] = {
    NodeKind.SUBJECT: NodeKind.TERM,
    NodeKind.TERM: NodeKind.WEEK,
    NodeKind.WEEK: NodeKind.CHAPTER,
    NodeKind.CHAPTER: NodeKind.CONTENT,
}


@dataclass(frozen=True)
class NodeKey:
    """Identity of a tree node: its kind plus its row id."""

    kind: NodeKind
    id: uuid.UUID

    @classmethod
    def parse(cls, raw: str) -> "NodeKey":
        """Parse ``"kind:uuid"``.

        Raises:
            FormValidationError: If the string is malformed.
        """
        kind, _, ident = raw.partition(":")
        try:
            return cls(NodeKind(kind), uuid.UUID(ident))
        except ValueError as exc:
            raise FormValidationError(f"Invalid node key: {raw!r}", field="expanded") from exc

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


@dataclass
class TreeNode:
    key: NodeKey
    parent: NodeKey | None
    title: str
    order_number: int
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class TreeView:
    """One rendered node of :meth:`HierarchyTree.project`."""

    key: str
    kind: str
    id: uuid.UUID
    title: str
    order_number: int
    expanded: bool
    editing: bool
    data: dict[str, Any] = field(default_factory=dict)
    can_move_up: bool = False
    can_move_down: bool = False
    child_count: int = 0
    children: list["TreeView"] = field(default_factory=list)


class HierarchyTree:
    """Flat-map tree over subjects with expand/collapse and inline editing.

    Args:
        repository: Repository that structural changes are sent to.  Only the
            read-side methods work without one.
    """

    def __init__(self, repository=None) -> None:
        self.repository = repository
        self.nodes: dict[NodeKey, TreeNode] = {}
        self.expanded: set[NodeKey] = set()
        self.editing: NodeKey | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_subjects(cls, subjects: Iterable[Any], repository=None) -> "HierarchyTree":
        tree = cls(repository)
        tree.load(subjects)
        return tree

    def load(self, subjects: Iterable[Any]) -> None:
        """Replace the node map with ``subjects`` and their trees.

        Subjects start expanded; previously expanded nodes that still exist
        stay expanded.
        """
        previous = set(self.expanded)
        self.nodes.clear()
        for subject in subjects:
            key = self._add_subject(subject)
            self.expanded.add(key)
        self.expanded = {k for k in self.expanded | previous if k in self.nodes}
        if self.editing not in self.nodes:
            self.editing = None

    def _put(self, kind: NodeKind, obj: Any, parent: NodeKey | None, title: str, **data: Any) -> NodeKey:
        key = NodeKey(kind, obj.id)
        self.nodes[key] = TreeNode(key, parent, title, getattr(obj, "order_number", 0) or 0, data)
        return key

    def _add_subject(self, subject: Any) -> NodeKey:
        key = self._put(
            NodeKind.SUBJECT,
            subject,
            None,
            subject.name,
            level=subject.level,
            exam_board=subject.exam_board,
        )
        for term in subject.terms:
            term_key = self._put(NodeKind.TERM, term, key, term.title)
            for week in term.weeks:
                week_key = self._put(NodeKind.WEEK, week, term_key, week.title)
                for chapter in week.chapters:
                    self._add_chapter(chapter, week_key)
        return key

    def _add_chapter(self, chapter: Any, week_key: NodeKey) -> NodeKey:
        key = self._put(
            NodeKind.CHAPTER,
            chapter,
            week_key,
            chapter.title,
            description=chapter.description,
            is_continuation=bool(chapter.is_continuation),
        )
        for content in chapter.content:
            self._add_content(content, key)
        return key

    def _add_content(self, content: Any, chapter_key: NodeKey) -> NodeKey:
        return self._put(
            NodeKind.CONTENT,
            content,
            chapter_key,
            content.title,
            type=content.type,
            status=content.status,
            duration=content.duration,
            file_url=content.file_url,
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _node(self, key: NodeKey) -> TreeNode:
        try:
            return self.nodes[key]
        except KeyError:
            raise FormValidationError(f"Unknown node {key}", field="key") from None

    def children(self, key: NodeKey | None) -> list[TreeNode]:
        """Direct children of ``key`` (roots when None), sorted by position."""
        found = [n for n in self.nodes.values() if n.parent == key]
        if key is None:
            return found
        return sorted(found, key=lambda n: n.order_number)

    def toggle(self, key: NodeKey) -> bool:
        """Flip the expanded state of ``key`` and return the new state."""
        self._node(key)
        if key in self.expanded:
            self.expanded.discard(key)
            return False
        self.expanded.add(key)
        return True

    def expand(self, key: NodeKey) -> None:
        self._node(key)
        self.expanded.add(key)

    def collapse(self, key: NodeKey) -> None:
        self.expanded.discard(key)

    def is_expanded(self, key: NodeKey) -> bool:
        return key in self.expanded

    def can_move_up(self, key: NodeKey) -> bool:
        return self._node(key).order_number > 1

    def can_move_down(self, key: NodeKey) -> bool:
        node = self._node(key)
        return node.order_number < len(self.children(node.parent))

    def project(self) -> list[TreeView]:
        """Build the nested view; children of collapsed nodes are omitted."""
        return [self._view(node) for node in self.children(None)]

    def _view(self, node: TreeNode) -> TreeView:
        expanded = node.key in self.expanded
        kids = self.children(node.key)
        movable = node.key.kind is NodeKind.CONTENT
        return TreeView(
            key=str(node.key),
            kind=node.key.kind.value,
            id=node.key.id,
            title=node.title,
            order_number=node.order_number,
            expanded=expanded,
            editing=node.key == self.editing,
            data=dict(node.data),
            can_move_up=movable and self.can_move_up(node.key),
            can_move_down=movable and self.can_move_down(node.key),
            child_count=len(kids),
            children=[self._view(k) for k in kids] if expanded else [],
        )

    # ------------------------------------------------------------------
    # Inline editing
    # ------------------------------------------------------------------

    def start_edit(self, key: NodeKey) -> None:
        """Begin editing ``key``; any other edit in progress is abandoned."""
        self._node(key)
        self.editing = key

    def cancel_edit(self) -> None:
        self.editing = None

    async def save_edit(self, values: dict[str, Any]) -> None:
        """Persist the edit in progress and leave edit mode.

        Subjects accept ``name``, ``level`` and ``exam_board``; topics accept
        ``title`` and ``type``; every other kind accepts ``title``.
        """
        if self.editing is None:
            raise FormValidationError("Nothing is being edited")
        key = self.editing
        node = self._node(key)
        repo = self.repository

        if key.kind is NodeKind.SUBJECT:
            fields = {k: values[k] for k in ("name", "level", "exam_board") if k in values}
            subject = await repo.update_subject(key.id, fields)
            node.title = subject.name
            node.data.update(level=subject.level, exam_board=subject.exam_board)
        elif key.kind is NodeKind.TERM:
            node.title = (await repo.rename_term(key.id, values.get("title", ""))).title
        elif key.kind is NodeKind.WEEK:
            node.title = (await repo.rename_week(key.id, values.get("title", ""))).title
        elif key.kind is NodeKind.CHAPTER:
            chapter = await repo.update_chapter(key.id, {"title": values.get("title", "")})
            node.title = chapter.title
        else:
            fields = {k: values[k] for k in ("title", "type") if k in values}
            content = await repo.update_content(key.id, fields)
            node.title = content.title
            node.data["type"] = content.type
        self.editing = None

    # ------------------------------------------------------------------
    # Structural intents
    # ------------------------------------------------------------------

    async def add_child(self, parent: NodeKey, **fields: Any) -> NodeKey:
        """Create a chapter under a week or a topic under a chapter."""
        self._node(parent)
        if parent.kind is NodeKind.WEEK:
            chapter = await self.repository.create_chapter(
                parent.id, fields.get("title", ""), fields.get("description")
            )
            key = self._add_chapter(chapter, parent)
        elif parent.kind is NodeKind.CHAPTER:
            content = await self.repository.create_content(
                parent.id,
                fields.get("title", ""),
                fields.get("type", "video"),
                description=fields.get("description"),
            )
            key = self._add_content(content, parent)
        else:
            raise FormValidationError(
                f"Items cannot be added under a {parent.kind.value}", field="parent"
            )
        self.expanded.add(parent)
        return key

    async def delete(self, key: NodeKey) -> None:
        """Delete a subject, chapter or topic and drop it from the tree."""
        node = self._node(key)
        if key.kind is NodeKind.SUBJECT:
            await self.repository.delete_subject(key.id)
        elif key.kind is NodeKind.CHAPTER:
            await self.repository.delete_chapter(key.id)
        elif key.kind is NodeKind.CONTENT:
            await self.repository.delete_content(key.id)
        else:
            raise FormValidationError(f"A {key.kind.value} cannot be deleted", field="key")
        self._remove_subtree(key)
        for sibling in self.children(node.parent) if node.parent else []:
            if sibling.order_number > node.order_number:
                sibling.order_number -= 1

    def _remove_subtree(self, key: NodeKey) -> None:
        for child in self.children(key):
            self._remove_subtree(child.key)
        self.nodes.pop(key, None)
        self.expanded.discard(key)
        if self.editing == key:
            self.editing = None

    async def continue_chapter(self, key: NodeKey) -> NodeKey:
        """Continue a chapter into the next week and show the copy."""
        if key.kind is not NodeKind.CHAPTER:
            raise FormValidationError("Only chapters can be continued", field="key")
        self._node(key)
        chapter = await self.repository.continue_chapter(key.id)
        week_key = NodeKey(NodeKind.WEEK, chapter.week_id)
        new_key = self._add_chapter(chapter, week_key)
        self.expanded.add(week_key)
        return new_key

    async def move_up(self, key: NodeKey) -> None:
        await self._move(key, "up")

    async def move_down(self, key: NodeKey) -> None:
        await self._move(key, "down")

    async def _move(self, key: NodeKey, direction: str) -> None:
        if key.kind is not NodeKind.CONTENT:
            raise FormValidationError("Only topics can be reordered", field="key")
        node = self._node(key)
        allowed = self.can_move_up(key) if direction == "up" else self.can_move_down(key)
        if not allowed:
            return
        await self.repository.move_content(key.id, direction)
        target = node.order_number - 1 if direction == "up" else node.order_number + 1
        for sibling in self.children(node.parent):
            if sibling.order_number == target:
                sibling.order_number = node.order_number
                break
        node.order_number = target
        logger.debug("Moved %s %s", key, direction)

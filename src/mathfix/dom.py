"""Mutable document tree with mutation observation.

A small DOM: Text, Comment and Element nodes under a Document, with
sibling navigation, insertion, removal, and a MutationObserver that
receives batched MutationRecords for child-list and character-data
changes.

Delivery is explicit. Mutations queue records on every interested
observer; ``Document.deliver_mutations()`` hands them over, which the
scheduler does between work slices. An observer callback therefore never
runs inside the edit that produced its records.

Node Hierarchy:
Node (base)
├── Text
├── Comment
└── Element
    └── Document

Example:
    >>> doc = Document()
    >>> body = doc.body
    >>> seen = []
    >>> observer = MutationObserver(lambda records, obs: seen.extend(records))
    >>> observer.observe(body, child_list=True, subtree=True)
    >>> _ = body.append_child(Text("hello"))
    >>> doc.deliver_mutations()
    1
    >>> seen[0].added_nodes[0].data
    'hello'

"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from typing import Literal

from mathfix.errors import TreeError
from mathfix.utils.logger import get_logger

logger = get_logger(__name__)

# Observer callbacks may mutate the tree; cap the delivery loop
MAX_DELIVERY_ROUNDS = 100


# =============================================================================
# Nodes
# =============================================================================


class Node:
    """Base class for all tree nodes."""

    __slots__ = ("parent",)

    def __init__(self) -> None:
        self.parent: Element | None = None

    @property
    def text_content(self) -> str:
        return ""

    @property
    def previous_sibling(self) -> Node | None:
        if self.parent is None:
            return None
        siblings = self.parent._children
        index = self.parent._index_of(self)
        return siblings[index - 1] if index > 0 else None

    @property
    def next_sibling(self) -> Node | None:
        if self.parent is None:
            return None
        siblings = self.parent._children
        index = self.parent._index_of(self)
        return siblings[index + 1] if index + 1 < len(siblings) else None

    def ancestors(self) -> Iterator[Element]:
        """Yield parent, grandparent, ... up to the root."""
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def closest(self, predicate: Callable[[Element], bool]) -> Element | None:
        """Nearest element, self included, satisfying predicate."""
        if isinstance(self, Element) and predicate(self):
            return self
        for ancestor in self.ancestors():
            if predicate(ancestor):
                return ancestor
        return None

    @property
    def root(self) -> Node:
        node: Node = self
        while node.parent is not None:
            node = node.parent
        return node

    @property
    def owner_document(self) -> Document | None:
        root = self.root
        return root if isinstance(root, Document) else None

    @property
    def is_connected(self) -> bool:
        return self.owner_document is not None

    def is_descendant_of(self, other: Node) -> bool:
        return any(ancestor is other for ancestor in self.ancestors())

    def remove(self) -> None:
        """Detach from the parent, if any."""
        if self.parent is not None:
            self.parent.remove_child(self)


class Text(Node):
    """Character data. Setting ``data`` queues a characterData record."""

    __slots__ = ("_data",)

    def __init__(self, data: str = "") -> None:
        super().__init__()
        self._data = data

    @property
    def data(self) -> str:
        return self._data

    @data.setter
    def data(self, value: str) -> None:
        if value == self._data:
            return
        old = self._data
        self._data = value
        _notify(MutationRecord(type="characterData", target=self, old_value=old))

    @property
    def text_content(self) -> str:
        return self._data

    def __repr__(self) -> str:
        return f"Text({self._data!r})"


class Comment(Node):
    """Comment node. Never scanned, never contributes text."""

    __slots__ = ("data",)

    def __init__(self, data: str = "") -> None:
        super().__init__()
        self.data = data

    def __repr__(self) -> str:
        return f"Comment({self.data!r})"


class Element(Node):
    """Element with a tag, string attributes and ordered children."""

    __slots__ = ("_children", "attrs", "tag")

    def __init__(
        self,
        tag: str,
        attrs: dict[str, str] | None = None,
        children: Iterable[Node] = (),
    ) -> None:
        super().__init__()
        self.tag = tag.lower()
        self.attrs: dict[str, str] = dict(attrs or {})
        self._children: list[Node] = []
        for child in children:
            self.append_child(child)

    # -- Attributes ------------------------------------------------------------

    def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    def set_attribute(self, name: str, value: str) -> None:
        self.attrs[name] = value

    def has_attribute(self, name: str) -> bool:
        return name in self.attrs

    @property
    def class_list(self) -> list[str]:
        return self.attrs.get("class", "").split()

    def has_class(self, name: str) -> bool:
        return name in self.class_list

    def add_class(self, *names: str) -> None:
        classes = self.class_list
        for name in names:
            if name not in classes:
                classes.append(name)
        self.attrs["class"] = " ".join(classes)

    # -- Children --------------------------------------------------------------

    @property
    def children(self) -> tuple[Node, ...]:
        return tuple(self._children)

    @property
    def first_child(self) -> Node | None:
        return self._children[0] if self._children else None

    @property
    def last_child(self) -> Node | None:
        return self._children[-1] if self._children else None

    def _index_of(self, child: Node) -> int:
        for i, node in enumerate(self._children):
            if node is child:
                return i
        raise TreeError(f"{child!r} is not a child of {self!r}")

    def append_child(self, node: Node) -> Node:
        return self.insert_before(node, None)

    def insert_before(self, node: Node, reference: Node | None) -> Node:
        """Insert node before reference (append when reference is None).

        A node that already has a parent is moved.
        """
        if node is self or (isinstance(node, Element) and self.is_descendant_of(node)):
            raise TreeError("Cannot insert a node into its own subtree")
        if reference is not None and reference.parent is not self:
            raise TreeError(f"{reference!r} is not a child of {self!r}")
        if node is reference:
            return node
        if node.parent is not None:
            node.parent.remove_child(node)

        if reference is None:
            previous = self._children[-1] if self._children else None
            self._children.append(node)
        else:
            index = self._index_of(reference)
            previous = self._children[index - 1] if index > 0 else None
            self._children.insert(index, node)
        node.parent = self

        _notify(
            MutationRecord(
                type="childList",
                target=self,
                added_nodes=(node,),
                previous_sibling=previous,
                next_sibling=reference,
            )
        )
        return node

    def remove_child(self, node: Node) -> Node:
        index = self._index_of(node)
        previous = self._children[index - 1] if index > 0 else None
        following = self._children[index + 1] if index + 1 < len(self._children) else None
        del self._children[index]
        node.parent = None

        _notify(
            MutationRecord(
                type="childList",
                target=self,
                removed_nodes=(node,),
                previous_sibling=previous,
                next_sibling=following,
            )
        )
        return node

    def replace_child(self, new: Node, old: Node) -> Node:
        self.insert_before(new, old)
        return self.remove_child(old)

    # -- Traversal -------------------------------------------------------------

    def iter_descendants(self) -> Iterator[Node]:
        """Preorder walk of all descendants (self excluded)."""
        stack = list(reversed(self._children))
        while stack:
            node = stack.pop()
            yield node
            if isinstance(node, Element):
                stack.extend(reversed(node._children))

    def find(self, tag: str) -> Element | None:
        """First descendant element with the given tag."""
        tag = tag.lower()
        for node in self.iter_descendants():
            if isinstance(node, Element) and node.tag == tag:
                return node
        return None

    @property
    def text_content(self) -> str:
        return "".join(
            node.data for node in self.iter_descendants() if isinstance(node, Text)
        )

    def __repr__(self) -> str:
        return f"Element({self.tag!r}, {len(self._children)} children)"


class Document(Element):
    """Tree root. Owns mutation observers and their pending records."""

    __slots__ = ("_observers", "doctype")

    def __init__(self, children: Iterable[Node] | None = None) -> None:
        self._observers: list[MutationObserver] = []
        self.doctype: str | None = None
        if children is None:
            children = (Element("html", children=(Element("head"), Element("body"))),)
        super().__init__("#document", children=children)

    @property
    def body(self) -> Element:
        """The <body> element, or the document itself for bare fragments."""
        return self.find("body") or self

    @property
    def head(self) -> Element | None:
        return self.find("head")

    @property
    def has_pending_mutations(self) -> bool:
        return any(observer._records for observer in self._observers)

    def deliver_mutations(self) -> int:
        """Hand queued records to observer callbacks.

        Records produced by callbacks are delivered in a further round.

        Returns:
            Number of records delivered.
        """
        delivered = 0
        for _ in range(MAX_DELIVERY_ROUNDS):
            pending = [obs for obs in list(self._observers) if obs._records]
            if not pending:
                return delivered
            for observer in pending:
                records = observer.take_records()
                if records:
                    delivered += len(records)
                    observer.callback(records, observer)
        logger.warning(
            "Mutation delivery did not settle after %d rounds", MAX_DELIVERY_ROUNDS
        )
        return delivered

    def __repr__(self) -> str:
        return f"Document({len(self._children)} children)"


# =============================================================================
# Mutation observation
# =============================================================================


@dataclass(frozen=True, slots=True)
class MutationRecord:
    """One tree change, as queued for observers."""

    type: Literal["childList", "characterData"]
    target: Node
    added_nodes: tuple[Node, ...] = ()
    removed_nodes: tuple[Node, ...] = ()
    previous_sibling: Node | None = None
    next_sibling: Node | None = None
    old_value: str | None = None


@dataclass(frozen=True, slots=True)
class _Registration:
    target: Node
    child_list: bool
    character_data: bool
    subtree: bool

    def wants(self, record: MutationRecord) -> bool:
        if record.type == "childList" and not self.child_list:
            return False
        if record.type == "characterData" and not self.character_data:
            return False
        if record.target is self.target:
            return True
        return self.subtree and record.target.is_descendant_of(self.target)


type MutationCallback = Callable[[list[MutationRecord], "MutationObserver"], None]


class MutationObserver:
    """Receives batches of MutationRecords for observed subtrees.

    Args:
        callback: Called with (records, observer) on delivery

    """

    __slots__ = ("_document", "_records", "_registrations", "callback")

    def __init__(self, callback: MutationCallback) -> None:
        self.callback = callback
        self._registrations: list[_Registration] = []
        self._records: list[MutationRecord] = []
        self._document: Document | None = None

    def observe(
        self,
        target: Node,
        *,
        child_list: bool = False,
        character_data: bool = False,
        subtree: bool = False,
    ) -> None:
        if not (child_list or character_data):
            raise TreeError("observe() needs child_list or character_data")
        document = target.owner_document
        if document is None:
            raise TreeError(f"Cannot observe detached node {target!r}")
        if self._document is not None and self._document is not document:
            raise TreeError("An observer cannot span documents")

        self._registrations = [r for r in self._registrations if r.target is not target]
        self._registrations.append(
            _Registration(target, child_list, character_data, subtree)
        )
        self._document = document
        if self not in document._observers:
            document._observers.append(self)

    def disconnect(self) -> None:
        """Stop observing and drop pending records."""
        if self._document is not None and self in self._document._observers:
            self._document._observers.remove(self)
        self._registrations.clear()
        self._records.clear()
        self._document = None

    def take_records(self) -> list[MutationRecord]:
        records = self._records
        self._records = []
        return records

    def _enqueue(self, record: MutationRecord) -> None:
        if any(reg.wants(record) for reg in self._registrations):
            self._records.append(record)


def _notify(record: MutationRecord) -> None:
    document = record.target.owner_document
    if document is None:
        return
    for observer in document._observers:
        observer._enqueue(record)


__all__ = [
    "Comment",
    "Document",
    "Element",
    "MutationObserver",
    "MutationRecord",
    "Node",
    "Text",
]

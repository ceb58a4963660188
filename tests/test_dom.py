"""Tests for mathfix.dom: the mutable tree and mutation observation."""

import pytest

from mathfix.dom import MAX_DELIVERY_ROUNDS, Comment, Document, Element, MutationObserver, Text
from mathfix.errors import TreeError


@pytest.fixture
def doc() -> Document:
    return Document()


class TestTree:
    def test_default_document_shape(self, doc: Document) -> None:
        assert doc.body.tag == "body"
        assert doc.head is not None
        assert doc.body.parent is not None and doc.body.parent.tag == "html"

    def test_bare_document_body_is_document(self) -> None:
        doc = Document(children=())
        assert doc.body is doc
        assert doc.head is None

    def test_siblings(self) -> None:
        a, b, c = Text("a"), Element("br"), Text("c")
        parent = Element("p", children=[a, b, c])
        assert a.previous_sibling is None
        assert a.next_sibling is b
        assert c.previous_sibling is b
        assert c.next_sibling is None
        assert parent.first_child is a

    def test_detached_has_no_siblings(self) -> None:
        node = Text("x")
        assert node.previous_sibling is None
        assert node.next_sibling is None
        assert not node.is_connected

    def test_insert_before_and_move(self) -> None:
        a, b = Text("a"), Text("b")
        first = Element("p", children=[a])
        second = Element("p", children=[b])
        second.insert_before(a, b)
        assert first.children == ()
        assert second.children == (a, b)
        assert a.parent is second

    def test_insert_before_foreign_reference(self) -> None:
        with pytest.raises(TreeError):
            Element("p").insert_before(Text("a"), Text("b"))

    def test_insert_into_own_subtree(self) -> None:
        outer = Element("div")
        inner = outer.append_child(Element("span"))
        with pytest.raises(TreeError):
            inner.append_child(outer)  # type: ignore[union-attr]

    def test_remove_and_replace(self) -> None:
        a, b = Text("a"), Text("b")
        parent = Element("p", children=[a])
        parent.replace_child(b, a)
        assert parent.children == (b,)
        assert a.parent is None
        b.remove()
        assert parent.children == ()

    def test_remove_unknown_child(self) -> None:
        with pytest.raises(TreeError):
            Element("p").remove_child(Text("x"))

    def test_text_content_skips_comments(self) -> None:
        p = Element("p", children=[Text("a"), Comment("hidden"), Element("b", children=[Text("c")])])
        assert p.text_content == "ac"

    def test_classes(self) -> None:
        el = Element("span", {"class": "one"})
        el.add_class("two", "one")
        assert el.class_list == ["one", "two"]
        assert el.has_class("two")
        assert not el.has_class("three")

    def test_closest_and_ancestors(self, doc: Document) -> None:
        code = doc.body.append_child(Element("code"))
        leaf = code.append_child(Text("x"))  # type: ignore[union-attr]
        assert leaf.closest(lambda e: e.tag == "code") is code
        assert leaf.closest(lambda e: e.tag == "pre") is None
        assert doc in list(leaf.ancestors())
        assert leaf.owner_document is doc

    def test_find_and_descendants_preorder(self) -> None:
        b = Element("b", children=[Text("1")])
        root = Element("div", children=[Element("i", children=[b]), Text("2")])
        tags = [n.tag if isinstance(n, Element) else n.data for n in root.iter_descendants()]  # type: ignore[attr-defined]
        assert tags == ["i", "b", "1", "2"]
        assert root.find("B") is b


class TestMutationObserver:
    def test_child_list_records_delivered_on_demand(self, doc: Document) -> None:
        seen = []
        observer = MutationObserver(lambda records, obs: seen.extend(records))
        observer.observe(doc.body, child_list=True, subtree=True)
        node = doc.body.append_child(Text("hello"))
        assert seen == []
        assert doc.has_pending_mutations
        assert doc.deliver_mutations() == 1
        assert seen[0].type == "childList"
        assert seen[0].added_nodes == (node,)
        assert not doc.has_pending_mutations

    def test_character_data(self, doc: Document) -> None:
        text = doc.body.append_child(Text("old"))
        seen = []
        observer = MutationObserver(lambda records, obs: seen.extend(records))
        observer.observe(doc.body, character_data=True, subtree=True)
        text.data = "new"  # type: ignore[union-attr]
        text.data = "new"  # type: ignore[union-attr]
        doc.deliver_mutations()
        assert len(seen) == 1
        assert seen[0].target is text
        assert seen[0].old_value == "old"

    def test_without_subtree_only_target(self, doc: Document) -> None:
        div = doc.body.append_child(Element("div"))
        seen = []
        observer = MutationObserver(lambda records, obs: seen.extend(records))
        observer.observe(doc.body, child_list=True)
        div.append_child(Text("deep"))  # type: ignore[union-attr]
        doc.body.append_child(Text("shallow"))
        doc.deliver_mutations()
        assert [r.added_nodes[0].data for r in seen] == ["shallow"]  # type: ignore[attr-defined]

    def test_option_filtering(self, doc: Document) -> None:
        seen = []
        observer = MutationObserver(lambda records, obs: seen.extend(records))
        observer.observe(doc.body, character_data=True, subtree=True)
        doc.body.append_child(Text("x"))
        doc.deliver_mutations()
        assert seen == []

    def test_removal_record(self, doc: Document) -> None:
        a = doc.body.append_child(Text("a"))
        b = doc.body.append_child(Text("b"))
        seen = []
        observer = MutationObserver(lambda records, obs: seen.extend(records))
        observer.observe(doc.body, child_list=True)
        a.remove()
        doc.deliver_mutations()
        assert seen[0].removed_nodes == (a,)
        assert seen[0].next_sibling is b

    def test_detached_changes_not_recorded(self, doc: Document) -> None:
        seen = []
        observer = MutationObserver(lambda records, obs: seen.extend(records))
        observer.observe(doc.body, child_list=True, subtree=True)
        Element("p").append_child(Text("loose"))
        assert not doc.has_pending_mutations

    def test_observe_requires_option(self, doc: Document) -> None:
        with pytest.raises(TreeError):
            MutationObserver(lambda r, o: None).observe(doc.body)

    def test_observe_requires_connected_target(self) -> None:
        with pytest.raises(TreeError):
            MutationObserver(lambda r, o: None).observe(Element("p"), child_list=True)

    def test_disconnect_drops_pending(self, doc: Document) -> None:
        seen = []
        observer = MutationObserver(lambda records, obs: seen.extend(records))
        observer.observe(doc.body, child_list=True)
        doc.body.append_child(Text("x"))
        observer.disconnect()
        assert doc.deliver_mutations() == 0
        assert seen == []

    def test_take_records(self, doc: Document) -> None:
        observer = MutationObserver(lambda r, o: None)
        observer.observe(doc.body, child_list=True)
        doc.body.append_child(Text("x"))
        assert len(observer.take_records()) == 1
        assert observer.take_records() == []

    def test_callback_mutations_delivered_next_round(self, doc: Document) -> None:
        batches = []

        def callback(records, obs):
            batches.append(len(records))
            if len(batches) == 1:
                doc.body.append_child(Text("from callback"))

        observer = MutationObserver(callback)
        observer.observe(doc.body, child_list=True)
        doc.body.append_child(Text("x"))
        assert doc.deliver_mutations() == 2
        assert batches == [1, 1]

    def test_runaway_delivery_capped(self, doc: Document) -> None:
        def callback(records, obs):
            doc.body.append_child(Text("again"))

        observer = MutationObserver(callback)
        observer.observe(doc.body, child_list=True)
        doc.body.append_child(Text("x"))
        assert doc.deliver_mutations() == MAX_DELIVERY_ROUNDS

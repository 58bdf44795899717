"""Tests for XmlFlow and the one-call conversion helpers."""

import io
from pathlib import Path
from typing import Any, List

import pytest

from xml_flow import (
    NEVER,
    FlowOptions,
    PreserveMarkup,
    TokenizerError,
    XmlFlow,
    XmlFlowError,
    collect,
    create_flow,
)

ITEMS_DOCUMENT = "<root><item>1</item><item>2</item><item>3</item></root>"

PEOPLE = [
    {"name": "Bill", "id": "1", "age": "27"},
    {"name": "Joe", "id": "2", "age": "29"},
    {"name": "Smitty", "id": "3", "age": "37"},
]


def run_collecting(flow: XmlFlow, event: str) -> List[Any]:
    """Run ``flow`` and return what ``event`` listeners received."""
    received: List[Any] = []
    flow.on(event, received.append)
    flow.run()
    return received


class TestSelectors:
    """Test element delivery to tag listeners."""

    def test_three_items_in_order(self, simple_document: Path) -> None:
        """Test one invocation per matching element, in document order."""
        items = run_collecting(create_flow(simple_document), "tag:item")

        assert items == [
            {"$name": "item", "$text": "one"},
            {"$name": "item", "$text": "two"},
            {"$name": "item", "$text": "three"},
        ]

    def test_nested_elements_at_any_depth(self, sample_document: Path) -> None:
        """Test that elements are matched wherever they occur."""
        people = collect(sample_document, "person")

        assert len(people) == 12

    def test_root_element(self, simple_document: Path) -> None:
        """Test that the document element is also delivered."""
        [root] = collect(simple_document, "root")

        assert root == {"$name": "root", "item": ["one", "two", "three"]}

    def test_unmatched_selector(self, simple_document: Path) -> None:
        """Test a selector matching nothing."""
        assert collect(simple_document, "missing") == []

    def test_multiple_selectors(self) -> None:
        """Test listeners for different tags on the same flow."""
        flow = create_flow("<root><a>1</a><b>2</b><a>3</a></root>")
        order: List[str] = []
        flow.on("tag:a", lambda value: order.append("a" + value["$text"]))
        flow.on("tag:b", lambda value: order.append("b" + value["$text"]))
        flow.run()

        assert order == ["a1", "b2", "a3"]

    def test_decorator_registration(self) -> None:
        """Test registering listeners as decorators."""
        flow = create_flow(ITEMS_DOCUMENT)
        seen: List[str] = []

        @flow.on("tag:item")
        def handle(item: dict) -> None:
            seen.append(item["$text"])

        flow.run()
        assert seen == ["1", "2", "3"]


class TestSimplifiedValues:
    """Test the values produced for the fixture document."""

    def test_child_elements_without_attributes(self, sample_document: Path) -> None:
        """Test repeated children with text-only grandchildren."""
        [value] = collect(sample_document, "no-attrs")

        assert value == {"$name": "no-attrs", "person": PEOPLE}

    def test_attributes_only_children(self, sample_document: Path) -> None:
        """Test that attributes-only children flatten."""
        [value] = collect(sample_document, "all-attrs")

        assert value == {"$name": "all-attrs", "person": PEOPLE}

    def test_attributes_separated_from_content(self, sample_document: Path) -> None:
        """Test $attrs next to text, a child, and an attribute-bearing child."""
        [value] = collect(sample_document, "mixed")

        assert value == {
            "$name": "mixed",
            "person": [
                {"$attrs": {"id": "1", "name": "Bill"}, "$text": "some text"},
                {"$attrs": {"id": "2", "name": "Joe"}, "p": "some paragraph"},
                {"$attrs": {"id": "3", "name": "Smitty"}, "thing": {"id": "999", "ref": "blah"}},
            ],
        }

    def test_mixed_content_markup(self, sample_document: Path) -> None:
        """Test the $markup sequence for interleaved text and elements."""
        [value] = collect(sample_document, "markup")

        assert value == {
            "$name": "markup",
            "$markup": [
                "Some unwrapped text",
                {"$name": "person", **PEOPLE[0]},
                "Some more unwrapped text",
                {"$name": "person", **PEOPLE[1]},
                {"$name": "person", **PEOPLE[2]},
            ],
        }

    def test_mixed_content_never(self, sample_document: Path) -> None:
        """Test that NEVER flattens mixed content."""
        [value] = collect(sample_document, "markup", {"preserveMarkup": NEVER})

        assert value == {
            "$name": "markup",
            "$text": ["Some unwrapped text", "Some more unwrapped text"],
            "person": PEOPLE,
        }

    def test_two_person_mixed_content(self) -> None:
        """Test text, element, text, element under both modes."""
        document = (
            '<doc>Intro <person id="1"/> middle <person id="2"/></doc>'
        )

        [selective] = collect(document, "doc")
        [never] = collect(document, "doc", preserve_markup=PreserveMarkup.NEVER)

        assert selective == {
            "$name": "doc",
            "$markup": [
                "Intro",
                {"$name": "person", "id": "1"},
                "middle",
                {"$name": "person", "id": "2"},
            ],
        }
        assert never == {
            "$name": "doc",
            "$text": ["Intro", "middle"],
            "person": [{"id": "1"}, {"id": "2"}],
        }

    def test_always_preserves_markup(self, sample_document: Path) -> None:
        """Test ALWAYS on elements that are not textually mixed."""
        people = collect(sample_document, "person", preserveMarkup="always")
        mixed_people = people[6:9]

        assert mixed_people == [
            {
                "$name": "person",
                "$attrs": {"id": "1", "name": "Bill"},
                "$markup": ["some text"],
            },
            {
                "$name": "person",
                "$attrs": {"id": "2", "name": "Joe"},
                "$markup": [{"$name": "p", "$markup": ["some paragraph"]}],
            },
            {
                "$name": "person",
                "$attrs": {"id": "3", "name": "Smitty"},
                "$markup": [{"$name": "thing", "id": "999", "ref": "blah"}],
            },
        ]

    def test_scripts(self, sample_document: Path) -> None:
        """Test script text under $script."""
        [value] = collect(sample_document, "has-scripts")

        assert value == {
            "$name": "has-scripts",
            "script": [
                "var x = 3;",
                {"$attrs": {"type": "text/javascript"}, "$script": "//this is a comment"},
            ],
        }

    def test_script_listener(self, sample_document: Path) -> None:
        """Test that a bare script is delivered with $script."""
        scripts = collect(sample_document, "script")

        assert scripts[0] == {"$name": "script", "$script": "var x = 3;"}

    @pytest.mark.parametrize(
        "options, expected",
        [
            ({}, "This is some text with extra whitespace."),
            ({"normalize": False}, "This is some text with extra    whitespace."),
            ({"trim": False}, "This is some text with extra whitespace. "),
            (
                {"normalize": False, "trim": False},
                "This is some text with extra    whitespace.   ",
            ),
        ],
    )
    def test_whitespace_options(self, sample_document: Path, options: dict, expected: str) -> None:
        """Test normalize and trim."""
        [value] = collect(sample_document, "extra-whitespace", options)

        assert value == {"$name": "extra-whitespace", "$text": expected}

    def test_whitespace_never_in_markup(self, sample_document: Path) -> None:
        """Test that indentation never appears in $markup."""
        [root] = collect(sample_document, "root", FlowOptions.faithful())

        assert all(isinstance(item, dict) for item in root["$markup"])

    def test_listener_receives_copy(self) -> None:
        """Test that mutating a delivered value leaves the parent untouched."""
        flow = create_flow("<root><item>a</item></root>")
        roots: List[dict] = []
        flow.on("tag:item", lambda value: value.update({"changed": True}))
        flow.on("tag:root", roots.append)
        flow.run()

        assert roots == [{"$name": "root", "item": "a"}]

    def test_listener_mutating_nested_lists(self) -> None:
        """Test that nested lists in a delivered value are copies too."""
        flow = create_flow("<root><items><i>a</i><i>b</i></items></root>")
        roots: List[dict] = []
        flow.on("tag:items", lambda value: value["i"].append("x"))
        flow.on("tag:root", roots.append)
        flow.run()

        assert roots == [{"$name": "root", "items": {"i": ["a", "b"]}}]

    def test_always_keeps_script_body(self) -> None:
        """Test that script leaves report $script under ALWAYS."""
        [root] = collect("<r><script>  a  &lt; b </script></r>", "r", preserveMarkup="always")

        assert root == {
            "$name": "r",
            "$markup": [{"$name": "script", "$script": "  a  < b "}],
        }


class TestSources:
    """Test the supported input sources."""

    def test_str_source(self) -> None:
        """Test document text."""
        assert len(collect(ITEMS_DOCUMENT, "item")) == 3

    def test_bytes_source(self) -> None:
        """Test encoded document bytes."""
        assert len(collect(ITEMS_DOCUMENT.encode("utf-8"), "item")) == 3

    def test_binary_file_object(self) -> None:
        """Test a binary file-like object."""
        assert len(collect(io.BytesIO(ITEMS_DOCUMENT.encode("utf-8")), "item")) == 3

    def test_text_file_object(self) -> None:
        """Test a text file-like object."""
        assert len(collect(io.StringIO(ITEMS_DOCUMENT), "item")) == 3

    def test_chunk_iterable(self) -> None:
        """Test an iterable of chunks split at arbitrary points."""
        chunks = ["<root><it", "em>1</item><item>2</it", "em></root>"]

        assert [item["$text"] for item in collect(chunks, "item")] == ["1", "2"]

    def test_tiny_chunk_size(self, sample_document: Path) -> None:
        """Test that chunking does not change the result."""
        default = collect(sample_document, "root")
        tiny = collect(sample_document, "root", chunk_size=3)

        assert tiny == default

    def test_unsupported_source(self) -> None:
        """Test rejecting unsupported sources."""
        with pytest.raises(TypeError, match="Unsupported source type"):
            create_flow(42)  # type: ignore[arg-type]

    def test_run_without_source(self) -> None:
        """Test that push-driven flows cannot run."""
        with pytest.raises(XmlFlowError, match="no source"):
            create_flow().run()


class TestPushInterface:
    """Test driving a flow with feed() and finish()."""

    def test_feed_and_finish(self) -> None:
        """Test pushing chunks manually."""
        flow = create_flow()
        items: List[dict] = []
        ended: List[bool] = []
        flow.on("tag:item", items.append)
        flow.on("end", lambda: ended.append(True))

        flow.feed("<root><item>a")
        assert items == []
        flow.feed("</item></root>")
        assert items == [{"$name": "item", "$text": "a"}]
        flow.finish()

        assert ended == [True]
        assert flow.ended

    def test_feed_after_finish_is_ignored(self) -> None:
        """Test that a finished flow ignores input."""
        flow = create_flow()
        flow.feed("<root/>")
        flow.finish()
        flow.feed("<more/>")
        flow.finish()

        assert flow.ended
        assert flow.error is None


class TestLifecycle:
    """Test end, error, pause, resume and cancel."""

    def test_end_fires_once_after_elements(self) -> None:
        """Test event ordering."""
        flow = create_flow(ITEMS_DOCUMENT)
        events: List[str] = []
        flow.on("tag:item", lambda value: events.append("item"))
        flow.on("end", lambda: events.append("end"))
        flow.run()
        flow.run()

        assert events == ["item", "item", "item", "end"]
        assert flow.finished

    def test_statistics(self) -> None:
        """Test counters after a run."""
        flow = create_flow(ITEMS_DOCUMENT)
        flow.on("tag:item", lambda value: None)
        statistics = flow.run()

        assert statistics is flow.statistics
        assert statistics.elements_closed == 4
        assert statistics.elements_emitted == 3
        assert statistics.max_depth == 2
        assert statistics.chunks_read == 1

    def test_malformed_markup_with_error_listener(self) -> None:
        """Test that tokenizer errors go to the error channel."""
        flow = create_flow("<root><item></root>")
        errors: List[Exception] = []
        ended: List[bool] = []
        flow.on("error", errors.append)
        flow.on("end", lambda: ended.append(True))
        flow.run()

        assert len(errors) == 1
        assert isinstance(errors[0], TokenizerError)
        assert flow.error is errors[0]
        assert ended == []
        assert not flow.ended

    def test_malformed_markup_without_error_listener(self) -> None:
        """Test that errors are raised when nobody listens."""
        with pytest.raises(TokenizerError, match="mismatched tag"):
            collect("<root><item></root>", "item")

    def test_truncated_document(self) -> None:
        """Test that missing close tags are reported."""
        flow = create_flow("<root><item>text</item>")
        errors: List[Exception] = []
        flow.on("error", errors.append)
        flow.run()

        assert len(errors) == 1
        assert isinstance(errors[0], XmlFlowError)

    def test_listener_exception_routed_to_error(self) -> None:
        """Test that listener failures end the conversion."""
        flow = create_flow(ITEMS_DOCUMENT)
        errors: List[Exception] = []
        calls: List[dict] = []

        def failing(value: dict) -> None:
            calls.append(value)
            raise RuntimeError("listener failed")

        flow.on("tag:item", failing)
        flow.on("error", errors.append)
        flow.run()

        assert len(calls) == 1
        assert isinstance(errors[0], RuntimeError)
        assert not flow.ended

    def test_listener_exception_raised_without_error_listener(self) -> None:
        """Test that listener failures propagate when unobserved."""
        flow = create_flow(ITEMS_DOCUMENT)
        flow.on("tag:item", lambda value: 1 / 0)

        with pytest.raises(ZeroDivisionError):
            flow.run()
        assert isinstance(flow.error, ZeroDivisionError)

    def test_error_is_terminal(self) -> None:
        """Test that nothing is delivered after an error."""
        flow = create_flow()
        errors: List[Exception] = []
        items: List[dict] = []
        flow.on("error", errors.append)
        flow.on("tag:item", items.append)

        flow.feed("<root><item>a</b>")
        flow.feed("<item>b</item></root>")
        flow.finish()

        assert len(errors) == 1
        assert items == []

    def test_pause_and_resume(self) -> None:
        """Test that pause stops reading at a chunk boundary."""
        flow = create_flow(ITEMS_DOCUMENT, chunk_size=8)
        items: List[dict] = []
        ended: List[bool] = []

        def pause_on_first(value: dict) -> None:
            items.append(value)
            if len(items) == 1:
                flow.pause()

        flow.on("tag:item", pause_on_first)
        flow.on("end", lambda: ended.append(True))
        flow.run()

        assert flow.paused
        assert len(items) < 3
        assert ended == []

        flow.resume()

        assert not flow.paused
        assert [item["$text"] for item in items] == ["1", "2", "3"]
        assert ended == [True]

    def test_cancel_stops_delivery(self) -> None:
        """Test that cancel drops the rest of the current chunk."""
        flow = create_flow(ITEMS_DOCUMENT)
        items: List[dict] = []
        ended: List[bool] = []

        def cancel_on_first(value: dict) -> None:
            items.append(value)
            flow.cancel()

        flow.on("tag:item", cancel_on_first)
        flow.on("end", lambda: ended.append(True))
        flow.run()

        assert len(items) == 1
        assert flow.cancelled
        assert ended == []
        assert flow.error is None

    def test_context_manager_cancels_unfinished_flow(self) -> None:
        """Test leaving a flow context early."""
        with create_flow(ITEMS_DOCUMENT) as flow:
            flow.feed("<root>")

        assert flow.cancelled

    def test_context_manager_after_run(self) -> None:
        """Test that a completed flow is left as it is."""
        with create_flow(ITEMS_DOCUMENT) as flow:
            flow.run()

        assert flow.ended
        assert not flow.cancelled

    def test_independent_flows(self) -> None:
        """Test that flows do not share state or options."""
        document = "<root><p>a <b>b</b> c</p></root>"
        first = create_flow(document)
        second = create_flow(document, preserve_markup="never")
        first_values = run_collecting(first, "tag:p")
        second_values = run_collecting(second, "tag:p")

        assert "$markup" in first_values[0]
        assert "$markup" not in second_values[0]
        assert first.options.preserve_markup is PreserveMarkup.SELECTIVE

"""Unit tests for the order status registry (graph + descriptions)."""

from __future__ import annotations

import pytest

from modules.orders.constants import (
    CANCELLABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
    available_transitions,
    status_change_description,
    status_description,
)

pytestmark = pytest.mark.unit


class TestTransitionGraph:
    def test_every_status_has_an_entry(self):
        assert set(VALID_TRANSITIONS) == set(OrderStatus.values)

    def test_graph_edges(self):
        assert available_transitions("draft") == {"processing", "cancelled"}
        assert available_transitions("processing") == {"completed", "cancelled"}
        assert available_transitions("completed") == frozenset()
        assert available_transitions("cancelled") == frozenset()

    def test_unknown_status_has_no_transitions(self):
        assert available_transitions("shipped") == frozenset()
        assert available_transitions(None) == frozenset()

    def test_terminal_states_are_the_two_sinks(self):
        assert TERMINAL_STATES == {OrderStatus.COMPLETED, OrderStatus.CANCELLED}

    def test_non_terminal_states_have_outgoing_edges(self):
        for status in set(OrderStatus.values) - TERMINAL_STATES:
            assert available_transitions(status), status

    def test_graph_is_acyclic(self):
        def reachable(start):
            seen, stack = set(), list(available_transitions(start))
            while stack:
                current = stack.pop()
                if current not in seen:
                    seen.add(current)
                    stack.extend(available_transitions(current))
            return seen

        for status in OrderStatus.values:
            assert status not in reachable(status)

    def test_cancellable_states_follow_the_graph(self):
        assert CANCELLABLE_STATES == {OrderStatus.DRAFT, OrderStatus.PROCESSING}


class TestDescriptions:
    @pytest.mark.parametrize(
        "status,label",
        [
            ("draft", "Draft"),
            ("processing", "Processing"),
            ("completed", "Completed"),
            ("cancelled", "Cancelled"),
        ],
    )
    def test_known_status_label(self, status, label):
        assert status_description(status) == label

    def test_unknown_status_is_echoed(self):
        assert status_description("legacy_status") == "legacy_status"

    def test_none_renders_empty(self):
        assert status_description(None) == ""

    def test_change_sentence_interpolates_labels(self):
        assert (
            status_change_description("draft", "processing")
            == "order status changed from Draft to Processing"
        )

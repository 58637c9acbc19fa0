"""Tests for ContextRouter - action targeting and vertical isolation."""

import logging

import pytest

from core.config import LedgerConfig
from core.context_router import ActiveContext, ContextRouter, UIState
from core.event_bus import EventBus
from core.models import BusinessVertical, DocumentKind


CONCRETE = BusinessVertical.CONCRETE
MASONRY = BusinessVertical.MASONRY


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def router(bus):
    return ContextRouter(LedgerConfig(), bus)


# =============================================================================
# RESOLUTION
# =============================================================================


class TestResolveDocumentKind:

    def test_visible_view_decides(self, router):
        context = router.resolve(UIState(active_view="estimate"))
        assert context.document_kind == DocumentKind.ESTIMATE

    def test_hidden_view_is_ignored(self, router):
        context = router.resolve(UIState(active_view="estimate", view_visible=False))
        assert context.document_kind == DocumentKind.INVOICE

    def test_keeps_last_kind_without_active_view(self, router):
        router.activate(ActiveContext(document_kind=DocumentKind.ESTIMATE, vertical=CONCRETE), "d1")
        assert router.resolve(UIState()).document_kind == DocumentKind.ESTIMATE


class TestResolveVertical:

    def test_selector_wins_over_markers(self, router):
        state = UIState(selected_vertical="masonry", markers={"concrete-services"})
        assert router.resolve(state).vertical == MASONRY

    def test_selector_is_case_insensitive(self, router):
        assert router.resolve(UIState(selected_vertical=" Masonry ")).vertical == MASONRY

    def test_unknown_selection_falls_through_with_warning(self, router, caplog):
        state = UIState(selected_vertical="roofing", markers={"estimate-masonry-section"})
        with caplog.at_level(logging.WARNING, logger="core.context_router"):
            context = router.resolve(state)
        assert context.vertical == MASONRY
        assert "roofing" in caplog.text

    def test_concrete_marker(self, router):
        assert router.resolve(UIState(markers={"calc-results"})).vertical == CONCRETE

    def test_masonry_marker(self, router):
        assert router.resolve(UIState(markers={"masonry-services"})).vertical == MASONRY

    def test_ambiguous_markers_use_default(self, router):
        state = UIState(markers={"concrete-services", "masonry-services"})
        assert router.resolve(state).vertical == CONCRETE

    def test_no_signal_defaults_to_concrete(self, router):
        assert router.resolve(UIState()).vertical == CONCRETE

    def test_configured_default(self, bus):
        router = ContextRouter(LedgerConfig(default_vertical="masonry"), bus)
        assert router.resolve(UIState()).vertical == MASONRY


# =============================================================================
# ACTIVATION AND TEARDOWN
# =============================================================================


class TestActivate:

    def test_switching_vertical_tears_down_previous_section(self, router, bus):
        torn_down = []
        bus.subscribe("SectionTornDown", torn_down.append)

        concrete = router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")
        masonry = router.activate(ActiveContext(document_kind="invoice", vertical=MASONRY), "d1")

        assert concrete.active is False
        assert masonry.active is True
        assert len(torn_down) == 1
        assert torn_down[0].vertical == CONCRETE

    def test_only_one_live_listener_per_view(self, router, bus):
        router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")
        router.activate(ActiveContext(document_kind="invoice", vertical=MASONRY), "d1")
        router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")

        assert bus.subscriber_count("LedgerChanged") == 1

    def test_views_keep_their_own_sections(self, router, bus):
        invoice = router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")
        estimate = router.activate(ActiveContext(document_kind="estimate", vertical=MASONRY), "d2")

        assert invoice.active and estimate.active
        assert router.section_for(DocumentKind.INVOICE) is invoice
        assert bus.subscriber_count("LedgerChanged") == 2

    def test_same_context_reuses_section(self, router):
        first = router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")
        second = router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")
        assert first is second

    def test_route_resolves_and_activates(self, router):
        context, section = router.route(UIState(active_view="estimate", selected_vertical="masonry"), "d9")
        assert context == ActiveContext(document_kind=DocumentKind.ESTIMATE, vertical=MASONRY)
        assert section.document_id == "d9"
        assert router.current == context

    def test_teardown_all(self, router, bus):
        router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")
        router.activate(ActiveContext(document_kind="estimate", vertical=MASONRY), "d2")

        router.teardown()

        assert router.section_for(DocumentKind.INVOICE) is None
        assert router.section_for(DocumentKind.ESTIMATE) is None
        assert bus.subscriber_count("LedgerChanged") == 0

    def test_attach_renderer_reaches_live_sections(self, router, renderer):
        section = router.activate(ActiveContext(document_kind="invoice", vertical=CONCRETE), "d1")
        router.attach_renderer(renderer)
        assert section.renderer is renderer

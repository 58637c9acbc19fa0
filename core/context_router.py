"""
Context router: which document and which business vertical an action targets.

resolve() reads ambient UI state, first match wins:
    1. An active, visible document-type view decides the document kind.
    2. A definite business-type selector value decides the vertical.
    3. Otherwise vertical-specific marker elements decide it.
    4. Otherwise the configured default vertical (Concrete).

activate() enforces isolation: within one document-type view only one
vertical section is ever live. Switching vertical tears the old section down
(handlers detached, cached calculator state reset) before the new one is
initialized. The router is called directly when a view becomes active;
nothing is inferred from watching the UI.
"""

import logging

from pydantic import BaseModel, ConfigDict, Field

from core.config import LedgerConfig
from core.event_bus import EventBus
from core.models import BusinessVertical, DocumentKind
from core.rendering import Renderer
from core.sections import VerticalSection

logger = logging.getLogger(__name__)


class UIState(BaseModel):
    """Snapshot of the ambient UI state relevant to routing."""

    active_view: DocumentKind | None = None
    view_visible: bool = True
    selected_vertical: str | None = None
    markers: set[str] = Field(default_factory=set)


class ActiveContext(BaseModel):
    """The (document kind, vertical) pair ledger operations must target."""

    model_config = ConfigDict(frozen=True)

    document_kind: DocumentKind
    vertical: BusinessVertical


class ContextRouter:
    """Resolves action context and owns the live vertical section per view."""

    def __init__(
        self,
        config: LedgerConfig | None = None,
        event_bus: EventBus | None = None,
        renderer: Renderer | None = None,
    ):
        self.config = config or LedgerConfig()
        self.event_bus = event_bus or EventBus()
        self.renderer = renderer
        self.current: ActiveContext | None = None
        self._sections: dict[DocumentKind, VerticalSection] = {}

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(self, state: UIState) -> ActiveContext:
        """Determine the target context. Never leaves the vertical undetermined."""
        return ActiveContext(
            document_kind=self._resolve_kind(state),
            vertical=self._resolve_vertical(state),
        )

    def _resolve_kind(self, state: UIState) -> DocumentKind:
        if state.active_view is not None and state.view_visible:
            return state.active_view
        if self.current is not None:
            return self.current.document_kind
        return DocumentKind.INVOICE

    def _resolve_vertical(self, state: UIState) -> BusinessVertical:
        selected = (state.selected_vertical or "").strip().lower()
        if selected:
            try:
                return BusinessVertical(selected)
            except ValueError:
                logger.warning(f"Ignoring unknown business type selection '{selected}'")

        if state.markers:
            concrete = bool(state.markers & set(self.config.concrete_markers))
            masonry = bool(state.markers & set(self.config.masonry_markers))
            if concrete and not masonry:
                return BusinessVertical.CONCRETE
            if masonry and not concrete:
                return BusinessVertical.MASONRY

        return self.config.default_vertical

    # -------------------------------------------------------------------------
    # Section lifetime
    # -------------------------------------------------------------------------

    def activate(self, context: ActiveContext, document_id: str) -> VerticalSection:
        """
        Make the context's vertical section the only live one for its view.

        The previous section of the same view is destroyed first when its
        vertical differs. Sections of other views are left alone.
        """
        section = self._sections.get(context.document_kind)

        if section is not None and section.vertical != context.vertical:
            logger.info(
                "Switching %s view from %s to %s",
                context.document_kind.value, section.vertical.value, context.vertical.value,
            )
            section.destroy()
            section = None

        if section is None:
            section = VerticalSection(
                context.document_kind, context.vertical, self.event_bus, self.renderer
            )
            self._sections[context.document_kind] = section

        section.initialize(document_id)
        self.current = context
        return section

    def route(self, state: UIState, document_id: str) -> tuple[ActiveContext, VerticalSection]:
        """resolve() then activate() in one call."""
        context = self.resolve(state)
        return context, self.activate(context, document_id)

    def section_for(self, document_kind: DocumentKind) -> VerticalSection | None:
        """Live section of a view, if any."""
        section = self._sections.get(DocumentKind(document_kind))
        if section is None or not section.active:
            return None
        return section

    def attach_renderer(self, renderer: Renderer | None) -> None:
        """Use renderer for every live and future section."""
        self.renderer = renderer
        for section in self._sections.values():
            section.renderer = renderer

    def teardown(self, document_kind: DocumentKind | None = None) -> None:
        """Destroy the section of one view, or of every view."""
        kinds = [DocumentKind(document_kind)] if document_kind else list(self._sections)
        for kind in kinds:
            section = self._sections.pop(kind, None)
            if section is not None:
                section.destroy()

"""Frame composition and the throttle that decides when to recompute it.

Every event except ``FrameTick`` marks the frame dirty and, when no frame
is pending, schedules one ``FrameTick`` ``FRAME_DELAY_SECONDS`` later. Only
a ``FrameTick`` makes the next ``view()`` rebuild the frame; in between the
cached text is returned unchanged, so bursts of events cost one render.
"""

from __future__ import annotations

from collections.abc import Callable

from ..effects import Effect, Schedule
from ..events import Event, FrameTick
from ..layout import Fixed, FrameBuffer, Percent, Rect, split_horizontal, split_vertical
from ..views.base import Surface
from .router import Router
from .state import UIState

FRAME_DELAY_SECONDS = 0.008
HEADER_HEIGHT = 1
FOOTER_HEIGHT = 1


def _paste_overlay(buffer: FrameBuffer, surface: Surface, rect: Rect) -> None:
    surface.frame = rect
    if not rect.empty:
        buffer.set_content_rect(surface.render(rect.width, rect.height), rect)


def _bottom_right(area: Rect, width: int, height: int) -> Rect:
    width = max(0, min(width, area.width))
    height = max(0, min(height, area.height))
    return Rect(area.x + area.width - width, area.y + area.height - height, width, height)


def compose_frame(state: UIState) -> str:
    """Lay out every visible surface for the current terminal size."""
    width, height = max(0, state.width), max(0, state.height)
    buffer = FrameBuffer(width, height)
    area = Rect(0, 0, width, height)
    overlays = state.overlays

    if overlays.diff is not None:
        body, footer = split_vertical(area, Fixed(max(0, height - FOOTER_HEIGHT)))
        if overlays.stacked is not None:
            overlays.stacked.frame = Rect(0, 0, 0, 0)
        _paste_overlay(buffer, overlays.diff, body)
        _paste_overlay(buffer, state.status, footer)
        if overlays.password is not None:
            w, h = overlays.password.size_hint(width, height)
            _paste_overlay(buffer, overlays.password, area.centered(w, h))
        return buffer.render()

    header, rest = split_vertical(area, Fixed(HEADER_HEIGHT))
    body, footer = split_vertical(rest, Fixed(max(0, rest.height - FOOTER_HEIGHT)))
    _paste_overlay(buffer, state.revset, header)

    primary = state.primary()
    preview = state.preview
    preview.body = body
    if preview.visible:
        main_share = Percent(100 - preview.percent)
        if preview.at_bottom(width, height):
            main, side = split_vertical(body, main_share)
        else:
            main, side = split_horizontal(body, main_share)
        _paste_overlay(buffer, primary, main)
        _paste_overlay(buffer, preview, side)
    else:
        _paste_overlay(buffer, primary, body)
    _paste_overlay(buffer, state.status, footer)

    if overlays.stacked is not None:
        w, h = overlays.stacked.size_hint(body.width, body.height)
        _paste_overlay(buffer, overlays.stacked, body.centered(w, h))
    for corner_surface in (overlays.sequence, overlays.leader):
        if corner_surface is not None:
            w, h = corner_surface.size_hint(body.width, body.height)
            _paste_overlay(buffer, corner_surface, _bottom_right(body, w, h))
    if overlays.flash.any():
        w, h = overlays.flash.size_hint(body.width, body.height)
        _paste_overlay(buffer, overlays.flash, _bottom_right(body, w, h))
    if overlays.password is not None:
        w, h = overlays.password.size_hint(width, height)
        _paste_overlay(buffer, overlays.password, area.centered(w, h))
    return buffer.render()


class RenderCache:
    """Wraps the router and caches the last composed frame."""

    def __init__(
        self,
        router: Router,
        compose: Callable[[UIState], str] = compose_frame,
    ) -> None:
        self.router = router
        self._compose = compose
        self._frame: str | None = None
        self._frame_pending = False
        self._render_due = True
        self.dirty = False

    @property
    def state(self) -> UIState:
        return self.router.state

    def update(self, event: Event) -> list[Effect]:
        if isinstance(event, FrameTick):
            self._frame_pending = False
            self._render_due = self.dirty or self._frame is None
            self.dirty = False
            return []
        effects = self.router.update(event)
        self.dirty = True
        if not self._frame_pending:
            self._frame_pending = True
            effects.append(Schedule(FRAME_DELAY_SECONDS, FrameTick()))
        return effects

    def view(self) -> str:
        if self._render_due or self._frame is None:
            self._frame = self._compose(self.state)
            self._render_due = False
        return self._frame

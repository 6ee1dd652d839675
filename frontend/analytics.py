from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from frontend.scheduler import Scheduler, throttle


logger = logging.getLogger("landing_contact.analytics")

EventSink = Callable[[str, dict[str, Any]], None]


class Analytics:
    """Forwards page events to a sink; disabled trackers drop everything."""

    def __init__(self, *, enabled: bool = False, sink: EventSink | None = None) -> None:
        self.enabled = enabled and sink is not None
        self._sink = sink

    def track_event(self, name: str, params: dict[str, Any] | None = None) -> None:
        if not self.enabled or self._sink is None:
            return
        payload = {"event_category": "engagement", "event_label": "", **(params or {})}
        try:
            self._sink(name, payload)
        except Exception:
            logger.error("Error tracking event %s", name, exc_info=True)

    def track_form_submit(self) -> None:
        self.track_event("form_submit", {"event_category": "form", "form_name": "contact_form"})

    def track_form_error(self, error_type: str, error_message: str) -> None:
        self.track_event(
            "form_error",
            {"event_category": "form", "error_type": error_type, "error_message": error_message},
        )


SCROLL_MILESTONES = (25, 50, 75, 90, 100)


class ScrollDepthTracker:
    """Reports each scroll-depth milestone once per page load.

    ``handle_scroll`` is throttled, so a burst of scroll events is sampled
    at most once per ``limit`` seconds.
    """

    def __init__(
        self,
        analytics: Analytics,
        scheduler: Scheduler,
        *,
        limit: float = 1.0,
        milestones: tuple[int, ...] = SCROLL_MILESTONES,
    ) -> None:
        self.analytics = analytics
        self.milestones = milestones
        self.max_percent = 0
        self._tracked: set[int] = set()
        self.handle_scroll = throttle(scheduler, self._record, limit)

    def _record(self, scroll_top: float, scrollable_height: float) -> None:
        if scrollable_height <= 0:
            return
        percent = round(scroll_top / scrollable_height * 100)
        if percent <= self.max_percent:
            return
        self.max_percent = percent

        for milestone in self.milestones:
            if percent >= milestone and milestone not in self._tracked:
                self._tracked.add(milestone)
                self.analytics.track_event("scroll_depth", {"scroll_percentage": milestone})

    def stop(self) -> None:
        self.handle_scroll.cancel()

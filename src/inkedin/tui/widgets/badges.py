"""Row of active-filter badges. Pressing a badge removes that filter."""

from __future__ import annotations

from textual.containers import Horizontal
from textual.widgets import Button, Static

from inkedin.models import ActiveFilterBadge
from inkedin.tui.messages import BadgeDismissed


class BadgeButton(Button):
    def __init__(self, badge: ActiveFilterBadge, index: int) -> None:
        label = badge.label if badge.is_default else f"{badge.label} ×"
        super().__init__(label, variant="default" if badge.is_default else "primary")
        self.index = index
        self.badge = badge
        self.disabled = badge.is_default


class BadgeBar(Horizontal):
    DEFAULT_CSS = """
    BadgeBar {
        height: auto;
        padding: 0 1;
    }
    BadgeBar Button {
        min-width: 8;
        margin: 0 1 0 0;
    }
    """

    def __init__(self) -> None:
        super().__init__(id="badge-bar")
        self.badges: list[ActiveFilterBadge] = []

    def update_badges(self, badges: list[ActiveFilterBadge]) -> None:
        if badges == self.badges:
            return
        self.badges = list(badges)
        self.remove_children()
        if not badges:
            self.mount(Static("No filters"))
            return
        self.mount(*[BadgeButton(badge, i) for i, badge in enumerate(badges)])

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        if isinstance(event.button, BadgeButton):
            self.post_message(BadgeDismissed(event.button.badge))

"""Textual panel for editing config.json while the watcher is stopped."""

from __future__ import annotations

from typing import Any, Callable

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Center, Container, Horizontal, Vertical
from textual.widgets import Button, ContentSwitcher, Footer, Static, Tab, Tabs

from whatsalarm import __version__
from .constants import CONFIG_PATH, WHATSAPP_GREEN
from .modals import reload_confirm_screen, unsaved_changes_screen
from .state import ConfigState, read_config_file, write_config_file
from .tabs.chats import ChatsTab
from .tabs.keywords import KeywordsTab
from .tabs.settings import SettingsTab
from .validators import detection_problems

TAB_IDS = ("keywords", "chats", "settings")


class ConfigPanelApp(App):
    """Holds the config dict shared by every tab and tracks unsaved edits."""

    CSS_PATH = "app.tcss"
    BINDINGS = [
        ("ctrl+s", "save_config", "Save"),
        ("ctrl+r", "reload_config", "Reload"),
        ("ctrl+q", "request_quit", "Quit"),
        ("ctrl+c", "request_quit", "Quit"),
    ]

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.config_state = ConfigState()

    def compose(self) -> ComposeResult:
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(
                        Text.assemble(("WHATS", WHATSAPP_GREEN), ("ALARM", "bold"), ("  config", "dim")),
                        id="title",
                    )
                    yield Static(f"v{__version__} | {CONFIG_PATH}", classes="subtle")
                    yield Static("", id="header-summary", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static("", id="header-status")
                    yield Horizontal(
                        Button("Save", id="save-btn"),
                        Button("Reload", id="reload-btn"),
                        id="header-actions",
                    )

        with Container(id="tabs-bar"):
            with Center(id="tabs-center"):
                yield Tabs(*(Tab(tab_id.title(), id=tab_id) for tab_id in TAB_IDS), id="tabs")

        with ContentSwitcher(id="content", initial=TAB_IDS[0]):
            yield KeywordsTab(id="keywords")
            yield ChatsTab(id="chats")
            yield SettingsTab(id="settings")
        yield Footer()

    def on_mount(self) -> None:
        self._load_config()

    def on_tabs_tab_activated(self, event: Tabs.TabActivated) -> None:
        if event.tab.id in TAB_IDS:
            self.query_one("#content", ContentSwitcher).current = event.tab.id

    def on_button_pressed(self, event: Button.Pressed) -> None:
        actions = {"save-btn": self.action_save_config, "reload-btn": self.action_reload_config}
        action = actions.get(event.button.id or "")
        if action is not None:
            action()

    def action_save_config(self) -> None:
        self._save_config()

    def action_reload_config(self) -> None:
        self._confirm_then(reload_confirm_screen, self._load_config, "reload")

    def action_request_quit(self) -> None:
        self._confirm_then(unsaved_changes_screen, self.exit, "discard")

    def _confirm_then(self, make_screen: Callable[[], Any], proceed: Callable[[], Any], skip_save: str) -> None:
        """Run proceed now if clean, otherwise ask first.

        "save" saves and proceeds only if the save succeeded; skip_save
        proceeds without saving; anything else cancels.
        """
        if not self.config_state.dirty:
            proceed()
            return

        def _on_choice(choice: str | None) -> None:
            if choice == skip_save or (choice == "save" and self._save_config()):
                proceed()

        self.push_screen(make_screen(), _on_choice)

    def _load_config(self) -> None:
        data, error = read_config_file(CONFIG_PATH)
        self.config_state.data = data
        self.config_state.error = error
        self.config_state.dirty = False
        self._refresh_header()
        for tab_type in (KeywordsTab, ChatsTab, SettingsTab):
            for tab in self.query(tab_type):
                tab.reload_from_config()

    def _save_config(self) -> bool:
        problems = detection_problems(self.config_state.data)
        if problems:
            return self._fail("not saved: " + "; ".join(problems))
        try:
            write_config_file(CONFIG_PATH, self.config_state.data)
        except OSError as exc:
            return self._fail(f"save failed: {exc.strerror or exc}")
        self.config_state.dirty = False
        self.config_state.error = None
        self._refresh_header()
        return True

    def _fail(self, message: str) -> bool:
        self.config_state.error = message
        self._refresh_header()
        return False

    def mark_dirty(self) -> None:
        self.config_state.dirty = True
        self._refresh_header()

    def update_config_section(self, section: str | tuple[str, ...], value: Any) -> None:
        """Set a top-level key, or a nested one given a path, and mark dirty."""
        path = (section,) if isinstance(section, str) else tuple(section)
        parent = self.config_state.section(*path[:-1])
        parent[path[-1]] = value
        self.mark_dirty()

    def _summary_text(self) -> str:
        data = self.config_state.data
        if data is None:
            return ""
        detection = data.get("detection", {})
        if not isinstance(detection, dict):
            return ""
        keywords = detection.get("keywords", [])
        chat_filter = detection.get("chat_filter", {})
        count = len(keywords) if isinstance(keywords, list) else 0
        if isinstance(chat_filter, dict) and chat_filter.get("enabled"):
            scope = f"chat filter: {chat_filter.get('mode', 'whitelist')}"
        else:
            scope = "all chats"
        return f"{count} keyword(s) | {scope}"

    def _refresh_header(self) -> None:
        state = self.config_state
        if state.error:
            label, css_class = state.error, "status-error"
        elif state.dirty:
            label, css_class = "modified *", "status-modified"
        else:
            label, css_class = "saved", "status-loaded"

        status = self.query_one("#header-status", Static)
        status.remove_class("status-loaded", "status-modified", "status-error")
        status.add_class(css_class)
        status.update(label)
        self.query_one("#header-summary", Static).update(self._summary_text())
        self.query_one("#save-btn", Button).disabled = state.data is None or not state.dirty

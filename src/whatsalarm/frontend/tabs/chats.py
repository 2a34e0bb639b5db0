"""Chats tab implementation."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Select, Static, Switch

from ..constants import CHAT_FILTER_MODES
from ..modals import AddChatScreen, DeleteValueScreen


class ChatsTab(Container):
    """Chats tab for editing detection.chat_filter."""

    MODE_HINTS = {
        "whitelist": "Only chats listed here can ring the alarm.",
        "active": "Any chat open in WhatsApp Web can ring the alarm.",
    }

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._loading_form = False
        self._current_row_key: Optional[str] = None
        self._table_ready = False

    def compose(self):
        with Vertical(id="chats-panel"):
            with Horizontal(id="chats-body"):
                with Container(id="chats-left"):
                    yield DataTable(id="chats-table", cursor_type="row")
                with Container(id="chats-right"):
                    yield Static("Chat filter", id="chats-title")
                    yield Static("enabled", classes="form-label")
                    yield Switch(value=False, id="chats-enabled")
                    yield Static("mode", classes="form-label")
                    yield Select(
                        [(mode, mode) for mode in CHAT_FILTER_MODES],
                        id="chats-mode",
                        allow_blank=False,
                    )
                    yield Static("", id="chats-hint", classes="subtle")
                    yield Static("", id="chats-error", classes="settings-error")
            with Horizontal(id="chats-actions"):
                yield Button("Add", id="add-chat", variant="success")
                yield Button("Delete", id="delete-chat", variant="error")

    def on_mount(self) -> None:
        table = self.query_one("#chats-table", DataTable)
        table.add_column("whitelisted chat", key="chat", width=40)
        table.zebra_stripes = True
        self._table_ready = True
        self.reload_from_config()

    def reload_from_config(self) -> None:
        if not self._table_ready:
            return
        chat_filter = self._get_chat_filter()
        chats = self._get_chats()
        table = self.query_one("#chats-table", DataTable)
        table.clear()
        for chat in chats:
            table.add_row(chat, key=chat)
        if self._current_row_key not in chats:
            self._current_row_key = None

        self._loading_form = True
        self.query_one("#chats-enabled", Switch).value = bool(chat_filter.get("enabled", False))
        mode = str(chat_filter.get("mode", "whitelist"))
        select = self.query_one("#chats-mode", Select)
        if mode in CHAT_FILTER_MODES:
            select.value = mode
            self._set_error("")
        else:
            select.value = CHAT_FILTER_MODES[0]
            self._set_error(f"Invalid value: {mode}")
        self._loading_form = False
        self._apply_state(bool(chat_filter.get("enabled", False)), mode)

    def _get_chat_filter(self) -> dict[str, Any]:
        data = self.app.config_state.data or {}
        detection = data.get("detection")
        if not isinstance(detection, dict):
            return {}
        chat_filter = detection.get("chat_filter")
        if isinstance(chat_filter, dict):
            return chat_filter
        return {}

    def _get_chats(self) -> list[str]:
        chats = self._get_chat_filter().get("whitelisted_chats")
        if isinstance(chats, list):
            return [str(chat) for chat in chats]
        return []

    def _update_field(self, key: str, value: Any) -> None:
        self.app.update_config_section(("detection", "chat_filter", key), value)

    def _set_error(self, message: str) -> None:
        self.query_one("#chats-error", Static).update(message)

    def _apply_state(self, enabled: bool, mode: str) -> None:
        self.query_one("#chats-mode", Select).disabled = not enabled
        whitelist_active = enabled and mode == "whitelist"
        self.query_one("#chats-table", DataTable).disabled = not whitelist_active
        self.query_one("#add-chat", Button).disabled = not whitelist_active
        self.query_one("#delete-chat", Button).disabled = not whitelist_active or self._current_row_key is None
        hint = self.MODE_HINTS.get(mode, "") if enabled else "Filter off: every chat can ring the alarm."
        self.query_one("#chats-hint", Static).update(hint)

    def _refresh_state(self) -> None:
        chat_filter = self._get_chat_filter()
        self._apply_state(bool(chat_filter.get("enabled", False)), str(chat_filter.get("mode", "whitelist")))

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._current_row_key = self._coerce_row_key(event.row_key)
        self._refresh_state()

    @on(Switch.Changed, "#chats-enabled")
    def _on_enabled_changed(self, event: Switch.Changed) -> None:
        if self._loading_form:
            return
        self._update_field("enabled", bool(event.value))
        self._refresh_state()

    @on(Select.Changed, "#chats-mode")
    def _on_mode_changed(self, event: Select.Changed) -> None:
        if self._loading_form or event.value is Select.BLANK:
            return
        self._update_field("mode", event.value)
        self._set_error("")
        self._refresh_state()

    @on(Button.Pressed, "#add-chat")
    def _on_add_chat(self) -> None:
        self.app.push_screen(AddChatScreen(self._get_chats()), self._handle_add_chat)

    @on(Button.Pressed, "#delete-chat")
    def _on_delete_chat(self) -> None:
        if self._current_row_key is None:
            return
        self.app.push_screen(
            DeleteValueScreen("Remove chat from whitelist?", self._current_row_key),
            self._handle_delete_chat,
        )

    def _handle_add_chat(self, chat: str | None) -> None:
        if not chat:
            return
        chats = self._get_chats()
        chats.append(chat)
        self._update_field("whitelisted_chats", chats)
        self.reload_from_config()

    def _handle_delete_chat(self, confirmed: bool | None) -> None:
        if not confirmed or self._current_row_key is None:
            return
        chats = [chat for chat in self._get_chats() if chat != self._current_row_key]
        self._update_field("whitelisted_chats", chats)
        self._current_row_key = None
        self.reload_from_config()

    @staticmethod
    def _coerce_row_key(value: Any) -> str:
        if hasattr(value, "value"):
            return str(value.value)
        return str(value)

"""Settings tab: every scalar in config.json outside keywords and chats."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from textual import on
from textual.containers import Container, Horizontal, ScrollableContainer, Vertical
from textual.widgets import ContentSwitcher, DataTable, Input, Select, Static, Switch

from ..constants import LOG_LEVELS
from ..validators import parse_non_negative_int, parse_percent

IntParser = Callable[[str], "tuple[int | None, str | None]"]


@dataclass(frozen=True)
class Field:
    widget_id: str
    path: tuple[str, ...]
    label: str
    default: Any
    # "int", "bool", "text" or "level"
    kind: str = "int"
    parser: IntParser = parse_non_negative_int


OBSERVER = ("detection", "observer")
DEDUP = ("detection", "dedup")

# section id -> (row label, row description, fields in form order)
SECTIONS: dict[str, tuple[str, str, list[Field]]] = {
    "observer": ("Observer", "Polling, grace period, dates", [
        Field("observer-poll", OBSERVER + ("poll_interval_ms",), "poll_interval_ms", 500),
        Field("observer-grace", OBSERVER + ("grace_period_ms",), "grace_period_ms", 2000),
        Field("observer-min-length", OBSERVER + ("min_message_length",), "min_message_length", 2),
        Field("observer-day-first", OBSERVER + ("day_first",), "day_first (01/02 = 1 February)", True, "bool"),
    ]),
    "dedup": ("Dedup", "Duplicate suppression and TTL", [
        Field("dedup-enabled", DEDUP + ("enabled",), "enabled", True, "bool"),
        Field("dedup-ttl", DEDUP + ("ttl_ms",), "ttl_ms", 3600000),
        Field("dedup-soft-cap", DEDUP + ("soft_cap",), "soft_cap", 1000),
    ]),
    "alarm": ("Alarm", "Sound file and volume", [
        Field("alarm-sound-file", ("alarm", "sound_file"), "sound_file", "./assets/alarm.mp3", "text"),
        Field("alarm-loop", ("alarm", "loop"), "loop", True, "bool"),
        Field("alarm-force-volume", ("alarm", "force_volume"), "force_volume", True, "bool"),
        Field("alarm-volume", ("alarm", "target_volume"), "target_volume (0-100)", 100, parser=parse_percent),
        Field("alarm-fallback", ("alarm", "fallback_on_volume_failure"), "fallback_on_volume_failure", True, "bool"),
        Field("alarm-auto-stop", ("alarm", "auto_stop_ms"), "auto_stop_ms (0 = ring until stopped)", 0),
    ]),
    "browser": ("Browser", "Profile dir and headless mode", [
        Field("browser-headless", ("browser", "headless"), "headless (QR code is printed to the terminal)", False, "bool"),
        Field("browser-profile", ("browser", "user_data_dir"), "user_data_dir", "./user_data", "text"),
        Field("browser-timeout", ("browser", "timeout_ms"), "timeout_ms", 120000),
    ]),
    "logging": ("Logging", "Console, rotating file, phone redaction", [
        Field("logging-enabled", ("logging", "enabled"), "enabled", False, "bool"),
        Field("logging-level", ("logging", "level"), "level", "INFO", "level"),
        Field("logging-console", ("logging", "console"), "console", True, "bool"),
        Field("logging-redact-phones", ("logging", "redact_phone_numbers"), "redact_phone_numbers", True, "bool"),
        Field("logging-file-enabled", ("logging", "file", "enabled"), "file.enabled", False, "bool"),
        Field("logging-file-path", ("logging", "file", "path"), "file.path", "logs/whatsalarm.log", "text"),
        Field("logging-file-max-bytes", ("logging", "file", "max_bytes"), "file.max_bytes", 5 * 1024 * 1024),
        Field("logging-file-backup", ("logging", "file", "backup_count"), "file.backup_count", 5),
    ]),
}

# switch -> widgets it enables
DEPENDENTS: dict[str, tuple[str, ...]] = {
    "alarm-force-volume": ("alarm-volume", "alarm-fallback"),
    "dedup-enabled": ("dedup-ttl", "dedup-soft-cap"),
    "logging-file-enabled": ("logging-file-path", "logging-file-max-bytes", "logging-file-backup"),
}

FIELDS_BY_ID = {field.widget_id: (section, field) for section, (_l, _d, fields) in SECTIONS.items() for field in fields}


class SettingsTab(Container):
    """Section list on the left, the selected section's form on the right."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._loading_form = False
        self._current_section: Optional[str] = None
        self._table_ready = False

    def compose(self):
        with Vertical(id="settings-panel"):
            with Horizontal(id="settings-body"):
                with Container(id="settings-left"):
                    yield DataTable(id="settings-table", cursor_type="row")
                with Container(id="settings-right"):
                    with ContentSwitcher(id="settings-forms"):
                        for section, (label, _description, fields) in SECTIONS.items():
                            with ScrollableContainer(id=f"settings-{section}"):
                                yield Static(label, classes="settings-title")
                                for field in fields:
                                    yield Static(field.label, classes="form-label")
                                    yield self._make_widget(field)
                                yield Static("", id=f"{section}-error", classes="settings-error")

    @staticmethod
    def _make_widget(field: Field):
        if field.kind == "bool":
            return Switch(id=field.widget_id)
        if field.kind == "level":
            return Select([(level, level) for level in LOG_LEVELS], id=field.widget_id, allow_blank=False)
        return Input(placeholder=str(field.default), id=field.widget_id)

    def on_mount(self) -> None:
        table = self.query_one("#settings-table", DataTable)
        table.add_column("section", key="section", width=18)
        table.add_column("description", key="description", width=34)
        for key, (label, description, _fields) in SECTIONS.items():
            table.add_row(label, description, key=key)
        table.zebra_stripes = True
        self._table_ready = True
        self._select_section("observer")
        self.reload_from_config()

    def reload_from_config(self) -> None:
        if not self._table_ready:
            return
        self._loading_form = True
        for section, (_label, _description, fields) in SECTIONS.items():
            self._set_error(section, "")
            for field in fields:
                self._fill(section, field, self._read(field))
        self._loading_form = False
        self._apply_state()

    def _fill(self, section: str, field: Field, value: Any) -> None:
        if field.kind == "bool":
            self.query_one(f"#{field.widget_id}", Switch).value = bool(value)
        elif field.kind == "level":
            select = self.query_one(f"#{field.widget_id}", Select)
            level = str(value).upper()
            if level in LOG_LEVELS:
                select.value = level
            else:
                select.value = field.default
                self._set_error(section, f"Invalid value: {value}")
        else:
            self.query_one(f"#{field.widget_id}", Input).value = str(value)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        row_key = event.row_key
        self._select_section(str(getattr(row_key, "value", row_key)))

    def _select_section(self, section_id: str) -> None:
        self._current_section = section_id
        self.query_one("#settings-forms", ContentSwitcher).current = f"settings-{section_id}"

    def _read(self, field: Field) -> Any:
        node: Any = self.app.config_state.data or {}
        for key in field.path:
            if not isinstance(node, dict) or key not in node:
                return field.default
            node = node[key]
        return node

    def _set_error(self, section: str, message: str) -> None:
        self.query_one(f"#{section}-error", Static).update(message)

    def _apply_state(self) -> None:
        for switch_id, widget_ids in DEPENDENTS.items():
            _section, switch_field = FIELDS_BY_ID[switch_id]
            enabled = bool(self._read(switch_field))
            for widget_id in widget_ids:
                self.query_one(f"#{widget_id}").disabled = not enabled

    @on(Input.Changed)
    def _on_input_changed(self, event: Input.Changed) -> None:
        if self._loading_form or event.input.id not in FIELDS_BY_ID:
            return
        section, field = FIELDS_BY_ID[event.input.id]
        if field.kind == "text":
            self.app.update_config_section(field.path, event.value.strip())
            return
        value, error = field.parser(event.value)
        self._set_error(section, error or "")
        if value is not None:
            self.app.update_config_section(field.path, value)

    @on(Switch.Changed)
    def _on_switch_changed(self, event: Switch.Changed) -> None:
        if self._loading_form or event.switch.id not in FIELDS_BY_ID:
            return
        _section, field = FIELDS_BY_ID[event.switch.id]
        self.app.update_config_section(field.path, bool(event.value))
        self._apply_state()

    @on(Select.Changed, "#logging-level")
    def _on_logging_level(self, event: Select.Changed) -> None:
        if self._loading_form or event.value is Select.BLANK:
            return
        self.app.update_config_section(("logging", "level"), event.value)
        self._set_error("logging", "")

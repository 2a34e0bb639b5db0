"""Keywords tab implementation."""

from __future__ import annotations

from typing import Any, Optional

from textual import on
from textual.containers import Container, Horizontal, Vertical
from textual.widgets import Button, DataTable, Static, Switch, TextArea

from whatsalarm.core.matcher import KeywordMatcher, MatchOptions
from whatsalarm.core.normalizer import normalize
from ..modals import AddKeywordScreen, DeleteValueScreen


class KeywordsTab(Container):
    """Keywords tab for editing detection.keywords and testing matches.

    Order matters: the first keyword found in a message is the one reported,
    so the list can be reordered.
    """

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._loading_form = False
        self._current_row_key: Optional[str] = None
        self._table_ready = False

    def compose(self):
        with Vertical(id="keywords-panel"):
            with Horizontal(id="keywords-body"):
                with Container(id="keywords-left"):
                    yield DataTable(id="keywords-table", cursor_type="row")
                with Container(id="keywords-right"):
                    yield Static("Matching", id="keywords-title")
                    yield Static("case_sensitive", classes="form-label")
                    yield Switch(value=False, id="kw-case-sensitive")
                    yield Static("whole_word_match", classes="form-label")
                    yield Switch(value=False, id="kw-whole-word")
                    yield Static("Keyword tester", id="keywords-test-title")
                    yield TextArea(id="kw-test-text")
                    with Horizontal(id="keywords-test-actions"):
                        yield Button("Test", id="kw-test", variant="primary")
                    yield Static("", id="kw-test-result")
            with Horizontal(id="keywords-actions"):
                yield Button("Add", id="add-keyword", variant="success")
                yield Button("Move up", id="keyword-up")
                yield Button("Move down", id="keyword-down")
                yield Button("Delete", id="delete-keyword", variant="error")

    def on_mount(self) -> None:
        table = self.query_one("#keywords-table", DataTable)
        table.add_column("#", key="position", width=4)
        table.add_column("keyword", key="keyword", width=36)
        table.zebra_stripes = True
        self._table_ready = True
        self.reload_from_config()

    def reload_from_config(self) -> None:
        if not self._table_ready:
            return
        table = self.query_one("#keywords-table", DataTable)
        table.clear()
        for index, keyword in enumerate(self._get_keywords()):
            table.add_row(str(index + 1), keyword, key=str(index))
        self._loading_form = True
        detection = self._get_detection()
        self.query_one("#kw-case-sensitive", Switch).value = bool(detection.get("case_sensitive", False))
        self.query_one("#kw-whole-word", Switch).value = bool(detection.get("whole_word_match", False))
        self._loading_form = False
        if self._current_index() is not None and self._current_index() >= len(self._get_keywords()):
            self._current_row_key = None
        self._update_action_state()

    def _get_detection(self) -> dict[str, Any]:
        data = self.app.config_state.data or {}
        detection = data.get("detection")
        if isinstance(detection, dict):
            return detection
        return {}

    def _get_keywords(self) -> list[str]:
        keywords = self._get_detection().get("keywords")
        if isinstance(keywords, list):
            return [str(keyword) for keyword in keywords]
        return []

    def _set_keywords(self, keywords: list[str]) -> None:
        self.app.update_config_section(("detection", "keywords"), keywords)

    def _update_action_state(self) -> None:
        index = self._current_index()
        count = len(self._get_keywords())
        self.query_one("#delete-keyword", Button).disabled = index is None
        self.query_one("#keyword-up", Button).disabled = index is None or index == 0
        self.query_one("#keyword-down", Button).disabled = index is None or index >= count - 1

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._current_row_key = self._coerce_row_key(event.row_key)
        self._update_action_state()

    @on(Switch.Changed, "#kw-case-sensitive")
    def _on_case_changed(self, event: Switch.Changed) -> None:
        if self._loading_form:
            return
        self.app.update_config_section(("detection", "case_sensitive"), bool(event.value))

    @on(Switch.Changed, "#kw-whole-word")
    def _on_whole_word_changed(self, event: Switch.Changed) -> None:
        if self._loading_form:
            return
        self.app.update_config_section(("detection", "whole_word_match"), bool(event.value))

    @on(Button.Pressed, "#add-keyword")
    def _on_add_keyword(self) -> None:
        self.app.push_screen(AddKeywordScreen(self._get_keywords()), self._handle_add_keyword)

    @on(Button.Pressed, "#delete-keyword")
    def _on_delete_keyword(self) -> None:
        index = self._current_index()
        keywords = self._get_keywords()
        if index is None or index >= len(keywords):
            return
        self.app.push_screen(DeleteValueScreen("Delete keyword?", keywords[index]), self._handle_delete_keyword)

    @on(Button.Pressed, "#keyword-up")
    def _on_move_up(self) -> None:
        self._move_selected(-1)

    @on(Button.Pressed, "#keyword-down")
    def _on_move_down(self) -> None:
        self._move_selected(1)

    def _handle_add_keyword(self, keyword: str | None) -> None:
        if not keyword:
            return
        keywords = self._get_keywords()
        keywords.append(keyword)
        self._set_keywords(keywords)
        self.reload_from_config()

    def _handle_delete_keyword(self, confirmed: bool | None) -> None:
        if not confirmed:
            return
        index = self._current_index()
        keywords = self._get_keywords()
        if index is None or index >= len(keywords):
            return
        keywords.pop(index)
        self._set_keywords(keywords)
        self._current_row_key = None
        self.reload_from_config()

    def _move_selected(self, offset: int) -> None:
        index = self._current_index()
        keywords = self._get_keywords()
        if index is None:
            return
        target = index + offset
        if not 0 <= target < len(keywords):
            return
        keywords[index], keywords[target] = keywords[target], keywords[index]
        self._set_keywords(keywords)
        self._current_row_key = str(target)
        self.reload_from_config()
        table = self.query_one("#keywords-table", DataTable)
        table.move_cursor(row=target)

    @on(Button.Pressed, "#kw-test")
    def _on_test_keywords(self) -> None:
        test_text = self.query_one("#kw-test-text", TextArea).text
        result = self.query_one("#kw-test-result", Static)
        keywords = self._get_keywords()
        if not test_text.strip():
            result.update("Add test text to run.")
            return
        if not keywords:
            result.update("No keywords configured.")
            return
        detection = self._get_detection()
        matcher = KeywordMatcher(
            keywords,
            MatchOptions(
                case_sensitive=bool(detection.get("case_sensitive", False)),
                whole_word=bool(detection.get("whole_word_match", False)),
            ),
        )
        keyword = matcher.find(test_text)
        normalized = normalize(test_text)
        lines = [f"Matched: {keyword}" if keyword else "Not matched"]
        if normalized != test_text:
            lines.append(f"Normalized text: {normalized}")
        result.update("\n".join(lines))

    def _current_index(self) -> Optional[int]:
        if self._current_row_key is None:
            return None
        try:
            return int(self._current_row_key)
        except ValueError:
            return None

    @staticmethod
    def _coerce_row_key(value: Any) -> str:
        if hasattr(value, "value"):
            return str(value.value)
        return str(value)

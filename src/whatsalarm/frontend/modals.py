"""Modal dialogs for the Textual config panel."""

from __future__ import annotations

from typing import Sequence

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Static

from .validators import validate_chat_name, validate_keyword

# (label, result, button variant)
Choice = tuple[str, str, str]

EXIT_CHOICES: Sequence[Choice] = (
    ("Save", "save", "success"),
    ("Discard", "discard", "error"),
    ("Cancel", "cancel", "default"),
)
RELOAD_CHOICES: Sequence[Choice] = (
    ("Save", "save", "default"),
    ("Reload", "reload", "warning"),
    ("Cancel", "cancel", "default"),
)


class ChoiceScreen(ModalScreen[str]):
    """Ask one question and dismiss with the result of the pressed button.

    Escape and any unknown button count as "cancel".
    """

    BINDINGS = [("escape", "cancel", "Cancel")]

    def __init__(self, heading: str, body: str, choices: Sequence[Choice]) -> None:
        super().__init__()
        self._heading = heading
        self._body = body
        self._choices = list(choices)

    def compose(self) -> ComposeResult:
        yield Container(
            Static(self._heading, classes="modal-title"),
            Static(self._body, classes="modal-body"),
            Horizontal(
                *(
                    Button(label, id=f"choice-{result}", variant=variant)
                    for label, result, variant in self._choices
                ),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        results = {result for _label, result, _variant in self._choices}
        choice = button_id.removeprefix("choice-")
        self.dismiss(choice if choice in results else "cancel")

    def action_cancel(self) -> None:
        self.dismiss("cancel")


def unsaved_changes_screen() -> ChoiceScreen:
    return ChoiceScreen("Unsaved changes", "Save changes before exit?", EXIT_CHOICES)


def reload_confirm_screen() -> ChoiceScreen:
    return ChoiceScreen("Reload config?", "Unsaved changes will be lost.", RELOAD_CHOICES)


class _AddValueScreen(ModalScreen[str | None]):
    """Single-field form; subclasses supply the labels and the validator."""

    TITLE_TEXT = ""
    LABEL = ""
    PLACEHOLDER = ""

    def __init__(self, existing: list[str]) -> None:
        super().__init__()
        self._existing = list(existing)

    def compose(self) -> ComposeResult:
        yield Container(
            Static(self.TITLE_TEXT, classes="modal-title"),
            Static("", id="add-error", classes="modal-error"),
            Static(self.LABEL, classes="form-label"),
            Input(placeholder=self.PLACEHOLDER, id="add-value"),
            Horizontal(
                Button("Add", id="add-confirm", variant="success"),
                Button("Cancel", id="add-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--form",
        )

    def check_value(self, raw_value: str) -> tuple[str | None, str | None]:
        raise NotImplementedError

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._confirm(event.value)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "add-cancel":
            self.dismiss(None)
        elif event.button.id == "add-confirm":
            self._confirm(self.query_one("#add-value", Input).value)

    def _confirm(self, raw_value: str) -> None:
        value, error = self.check_value(raw_value)
        if error or value is None:
            self.query_one("#add-error", Static).update(error or "invalid value")
            return
        self.dismiss(value)


class AddKeywordScreen(_AddValueScreen):
    """Modal form for adding a keyword."""

    TITLE_TEXT = "Add keyword"
    LABEL = "keyword"
    PLACEHOLDER = "e.g. الغياب"

    def check_value(self, raw_value: str) -> tuple[str | None, str | None]:
        check = validate_keyword(raw_value, self._existing)
        return check.value, check.error


class AddChatScreen(_AddValueScreen):
    """Modal form for whitelisting a chat."""

    TITLE_TEXT = "Whitelist chat"
    LABEL = "chat name (exactly as shown in the chat header)"
    PLACEHOLDER = "Family"

    def check_value(self, raw_value: str) -> tuple[str | None, str | None]:
        check = validate_chat_name(raw_value, self._existing)
        return check.value, check.error


class DeleteValueScreen(ModalScreen[bool]):
    """Confirm deletion of a keyword or a whitelisted chat."""

    def __init__(self, heading: str, value: str) -> None:
        super().__init__()
        self._heading = heading
        self._value = value

    def compose(self) -> ComposeResult:
        yield Container(
            Static(self._heading, classes="modal-title"),
            Static(self._value, classes="modal-body"),
            Horizontal(
                Button("Delete", id="delete-confirm", variant="error"),
                Button("Cancel", id="delete-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "delete-confirm")

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


SUBMIT_LABEL = "문의하기"
SUBMITTING_LABEL = "전송 중..."


class FieldPresenter(Protocol):
    def show_error(self, field: str, message: str) -> None:
        ...

    def clear(self, field: str) -> None:
        ...


class FormView(FieldPresenter, Protocol):
    def get_value(self, field: str) -> str:
        ...

    def set_value(self, field: str, value: str) -> None:
        ...

    def has_error(self, field: str) -> bool:
        ...

    def focus(self, field: str) -> None:
        ...

    def show_message(self, text: str, kind: str = "info") -> None:
        ...

    def hide_message(self) -> None:
        ...

    def set_loading(self, loading: bool) -> None:
        ...

    def reset(self) -> None:
        ...


class InMemoryFormView:
    """Headless form: keeps what a page would render so it can be inspected."""

    def __init__(self, fields: Iterable[str]) -> None:
        self.fields = list(fields)
        self.values: dict[str, str] = {name: "" for name in self.fields}
        self.errors: dict[str, str] = {}
        self.focused: str | None = None
        self.message: str | None = None
        self.message_kind: str | None = None
        self.loading = False
        self.button_label = SUBMIT_LABEL

    def get_value(self, field: str) -> str:
        return self.values.get(field, "")

    def set_value(self, field: str, value: str) -> None:
        if field in self.values:
            self.values[field] = value

    def show_error(self, field: str, message: str) -> None:
        if field in self.values:
            self.errors[field] = message

    def clear(self, field: str) -> None:
        self.errors.pop(field, None)

    def has_error(self, field: str) -> bool:
        return field in self.errors

    def focus(self, field: str) -> None:
        self.focused = field

    def show_message(self, text: str, kind: str = "info") -> None:
        self.message = text
        self.message_kind = kind

    def hide_message(self) -> None:
        self.message = None
        self.message_kind = None

    def set_loading(self, loading: bool) -> None:
        self.loading = loading
        self.button_label = SUBMITTING_LABEL if loading else SUBMIT_LABEL

    def reset(self) -> None:
        for name in self.fields:
            self.values[name] = ""

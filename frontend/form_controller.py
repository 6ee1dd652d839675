"""Contact form controller.

One controller is created per page load and owns the form session: field
validation, the in-flight submission flag, draft persistence and the
messages shown after a submission. Rendering goes through a
:class:`~frontend.presenter.FormView`, timers through a
:class:`~frontend.scheduler.Scheduler`, so the controller runs without a
browser.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

import httpx

from backend.utils.validation import FieldRule, check_value
from frontend.analytics import Analytics
from frontend.presenter import FormView
from frontend.rules import CLIENT_RULES, FORM_FIELDS
from frontend.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from frontend.storage import DRAFT_KEY, DraftStore, MemoryDraftStore, StorageError
from frontend.utils import format_phone_number, sanitize_html


logger = logging.getLogger("landing_contact.form")

DEFAULT_API_ENDPOINT = os.getenv("CONTACT_API_ENDPOINT", "http://localhost:3000/api/contact").strip()
REQUEST_TIMEOUT = 15.0

INVALID_FORM_MESSAGE = "모든 필수 항목을 올바르게 입력해주세요."
SUCCESS_MESSAGE = "메일이 성공적으로 전송되었습니다! 입력해주신 이메일 주소로 빠른 시일 내에 답변드리겠습니다."
FALLBACK_ERROR_MESSAGE = "전송 중 오류가 발생했습니다. 다시 시도해주세요."
NETWORK_ERROR_MESSAGE = "네트워크 오류가 발생했습니다. 인터넷 연결을 확인하고 다시 시도해주세요."

SUCCESS_MESSAGE_DELAY = 0.1
SUCCESS_MESSAGE_TIMEOUT = 8.0


class NetworkError(Exception):
    """No HTTP response was obtained for the submission."""


class SubmissionState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"


class SubmissionOutcome(str, Enum):
    SKIPPED = "skipped"
    REJECTED = "rejected"
    SUCCESS = "success"
    FAILED = "failed"
    NETWORK_ERROR = "network_error"


class FormController:
    def __init__(
        self,
        view: FormView,
        *,
        client: httpx.AsyncClient | None = None,
        rules: Mapping[str, FieldRule] = CLIENT_RULES,
        fields: Sequence[str] = FORM_FIELDS,
        store: DraftStore | None = None,
        scheduler: Scheduler | None = None,
        analytics: Analytics | None = None,
        api_endpoint: str = DEFAULT_API_ENDPOINT,
        draft_key: str = DRAFT_KEY,
    ) -> None:
        self.view = view
        self.rules = dict(rules)
        self.fields = tuple(fields)
        self.store = store if store is not None else MemoryDraftStore()
        self.scheduler = scheduler if scheduler is not None else AsyncioScheduler()
        self.analytics = analytics if analytics is not None else Analytics()
        self.api_endpoint = api_endpoint
        self.draft_key = draft_key

        self._client = client
        self._submitting = False
        self._state = SubmissionState.IDLE
        self._message_timers: list[TimerHandle] = []

    @property
    def state(self) -> SubmissionState:
        return self._state

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def init(self) -> None:
        self.load_draft()

    # Validation

    def validate_field(self, name: str) -> bool:
        rule = self.rules.get(name)
        if rule is None or name not in self.fields:
            return True

        result = check_value(rule, self.view.get_value(name))
        if result.valid:
            self.view.clear(name)
        else:
            self.view.show_error(name, result.message or "")
        return result.valid

    def validate_form(self) -> bool:
        results = [self.validate_field(name) for name in self.rules]
        return all(results)

    # Field events

    def handle_input(self, name: str, value: str) -> None:
        if name not in self.fields:
            return
        if name == "phone":
            value = format_phone_number(value)
        self.view.set_value(name, value)
        self.view.clear(name)
        self.save_draft()

    def handle_blur(self, name: str) -> bool:
        return self.validate_field(name)

    # Submission

    def build_submission(self) -> dict[str, str | None]:
        submission: dict[str, str | None] = {}
        for name in self.fields:
            value = self.view.get_value(name).strip()
            submission[name] = sanitize_html(value) if value else None
        return submission

    async def submit(self) -> SubmissionOutcome:
        if self._submitting:
            logger.debug("Form is already being submitted")
            return SubmissionOutcome.SKIPPED

        self._state = SubmissionState.VALIDATING
        if not self.validate_form():
            self._show_message(INVALID_FORM_MESSAGE, "error")
            first_error = next((name for name in self.fields if self.view.has_error(name)), None)
            if first_error is not None:
                self.view.focus(first_error)
            self._state = SubmissionState.IDLE
            return SubmissionOutcome.REJECTED

        payload = {key: value for key, value in self.build_submission().items() if value is not None}

        self._submitting = True
        self._state = SubmissionState.SUBMITTING
        self.view.set_loading(True)
        try:
            response = await self._post(payload)
            return self._handle_response(response)
        except NetworkError:
            logger.warning("Form submission error", exc_info=True)
            self._show_message(NETWORK_ERROR_MESSAGE, "error")
            return SubmissionOutcome.NETWORK_ERROR
        finally:
            self.view.set_loading(False)
            self._submitting = False
            self._state = SubmissionState.IDLE

    async def _post(self, payload: dict[str, str]) -> httpx.Response:
        try:
            if self._client is not None:
                return await self._client.post(self.api_endpoint, json=payload)
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                return await client.post(self.api_endpoint, json=payload)
        except httpx.RequestError as exc:
            # Transport failures and undecodable bodies alike: no usable response.
            raise NetworkError(f"Could not reach {self.api_endpoint}") from exc

    def _handle_response(self, response: httpx.Response) -> SubmissionOutcome:
        try:
            result: Any = response.json()
        except ValueError:
            result = None
        if not isinstance(result, dict):
            result = {}

        if response.is_success and result.get("success") is True:
            self._on_success()
            return SubmissionOutcome.SUCCESS

        message = str(result.get("message") or FALLBACK_ERROR_MESSAGE)
        self._show_message(message, "error")

        errors = result.get("errors")
        if isinstance(errors, list):
            for error in errors:
                if not isinstance(error, dict):
                    continue
                field = error.get("field")
                if field in self.fields:
                    self.view.show_error(field, str(error.get("message") or ""))

        self.analytics.track_form_error(f"http_{response.status_code}", message)
        return SubmissionOutcome.FAILED

    def _on_success(self) -> None:
        self.reset_form()
        self.analytics.track_form_submit()
        self.clear_draft()
        self._message_timers.append(
            self.scheduler.call_later(SUCCESS_MESSAGE_DELAY, self._show_success_message)
        )

    def _show_success_message(self) -> None:
        self.view.show_message(SUCCESS_MESSAGE, "success")
        self._message_timers.append(
            self.scheduler.call_later(SUCCESS_MESSAGE_TIMEOUT, self.view.hide_message)
        )

    def _cancel_message_timers(self) -> None:
        for handle in self._message_timers:
            handle.cancel()
        self._message_timers.clear()

    def _show_message(self, text: str, kind: str) -> None:
        self._cancel_message_timers()
        self.view.show_message(text, kind)

    def reset_form(self) -> None:
        self._cancel_message_timers()
        self.view.reset()
        for name in self.fields:
            self.view.clear(name)
        self.view.hide_message()
        if "name" in self.fields:
            self.view.focus("name")

    # Draft persistence

    def save_draft(self) -> None:
        data = {name: self.view.get_value(name) for name in self.fields}
        try:
            self.store.set(self.draft_key, json.dumps(data, ensure_ascii=False))
        except StorageError:
            logger.warning("Could not save form data", exc_info=True)

    def load_draft(self) -> None:
        try:
            raw = self.store.get(self.draft_key)
        except StorageError:
            logger.warning("Could not load saved form data", exc_info=True)
            return
        if not raw:
            return

        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Could not load saved form data", exc_info=True)
            return
        if not isinstance(data, dict):
            return

        for name, value in data.items():
            if name in self.fields:
                self.view.set_value(name, value if isinstance(value, str) else "")

    def clear_draft(self) -> None:
        try:
            self.store.remove(self.draft_key)
        except StorageError:
            logger.warning("Could not clear saved form data", exc_info=True)

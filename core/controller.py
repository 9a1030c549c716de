"""Query lifecycle controller.

State machine
─────────────
    idle ──submit──▶ validating ──▶ in_flight ──▶ succeeded
      ▲                  │              │
      └──── reset ───────┴──▶ failed ◀──┘

A submit from ``succeeded`` or ``failed`` re-enters ``validating`` and clears
the previous result. A submit while ``validating``/``in_flight`` is ignored.
Exactly one transport call is made per accepted submission: no retries,
no cancellation.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import httpx

from core import normalizer, request_builder
from core.errors import ApiError, InputValidationError, QueryError, TransportError
from core.models import (
    CompanyName,
    CompanyUrl,
    NormalizedResult,
    OutboundRequest,
    QueryFailure,
    QueryState,
    QueryStatus,
    SearchTarget,
)
from core.transport import Transport

logger = logging.getLogger(__name__)

MISSING_API_KEY = "API Key not found in environment."
MISSING_TARGET = "Please provide a company name or URL."
UNDECODABLE_BODY = "Could not decode the API response."


def resolve_target(company_name: str, company_url: str) -> SearchTarget:
    """Turn the two form fields into a ``SearchTarget``.

    Whitespace-only counts as blank, but the chosen field is kept exactly as
    typed so the prompt quotes the user's own text.

    Raises:
        InputValidationError: Unless exactly one field is non-blank.
    """
    has_name = bool((company_name or "").strip())
    has_url = bool((company_url or "").strip())
    if has_name == has_url:
        raise InputValidationError(MISSING_TARGET)
    return CompanyUrl(value=company_url) if has_url else CompanyName(value=company_name)


def error_message(response: httpx.Response) -> str:
    """Pick the user-facing message for a non-success response.

    Prefers the body's ``error.message``, then the HTTP reason phrase.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    error = body.get("error") if isinstance(body, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    if isinstance(message, str) and message:
        return message
    return response.reason_phrase or f"Request failed with status {response.status_code}."


class QueryController:
    """Owns a single ``QueryState`` and drives one request at a time.

    The credential and model are resolved by the caller; this class never
    reads the environment. State changes are guarded by a lock because the
    web server handles requests on threads, but the lock is never held
    across the transport call.
    """

    def __init__(
        self,
        api_key: str,
        transport: Transport,
        model: str = request_builder.DEFAULT_MODEL,
    ) -> None:
        self._api_key = api_key
        self._transport = transport
        self._model = model
        self._state = QueryState()
        self._lock = threading.Lock()

    @property
    def state(self) -> QueryState:
        return self._state

    def reset(self) -> QueryState:
        """Return to ``idle``, dropping any result or error. No-op while busy."""
        with self._lock:
            if not self._state.is_busy:
                self._state = QueryState()
            return self._state

    def submit(self, company_name: str = "", company_url: str = "") -> QueryState:
        """Validate the form, call the API once, and store the outcome.

        Args:
            company_name: Company name field (used when no URL is given).
            company_url: Company URL field.

        Returns:
            The state after the submission settles, or the unchanged current
            state if a request is already in flight.
        """
        with self._lock:
            if self._state.is_busy:
                logger.warning("Submit ignored: a query is already %s", self._state.status.value)
                return self._state
            self._state = QueryState(status=QueryStatus.VALIDATING)

        try:
            target = self._validate(company_name, company_url)
        except InputValidationError as exc:
            logger.info("Query rejected: %s", exc.message)
            return self._settle(failure=exc.to_failure())

        request = request_builder.build(target, model=self._model)
        with self._lock:
            self._state = QueryState(status=QueryStatus.IN_FLIGHT)
        logger.info("Query dispatched target=%s:%r model=%s", target.kind, target.value, self._model)

        try:
            result = self._execute(request)
        except QueryError as exc:
            logger.info("Query failed kind=%s status=%s: %s", exc.kind, exc.status_code, exc.message)
            return self._settle(failure=exc.to_failure())
        except Exception as exc:
            self._settle(failure=QueryFailure(kind="transport", message=str(exc) or type(exc).__name__))
            raise

        logger.info("Query succeeded: %d chars, reasoning=%s", len(result.content), result.reasoning is not None)
        return self._settle(result=result)

    # ── Internals ──────────────────────────────────────────────────────────

    def _validate(self, company_name: str, company_url: str) -> SearchTarget:
        if not self._api_key:
            raise InputValidationError(MISSING_API_KEY)
        return resolve_target(company_name, company_url)

    def _execute(self, request: OutboundRequest) -> NormalizedResult:
        response = self._transport.send(request)
        if not response.is_success:
            raise ApiError(error_message(response), status_code=response.status_code)
        try:
            body = response.json()
        except ValueError as exc:
            raise TransportError(UNDECODABLE_BODY, status_code=response.status_code) from exc
        return normalizer.normalize(body)

    def _settle(
        self,
        result: Optional[NormalizedResult] = None,
        failure: Optional[QueryFailure] = None,
    ) -> QueryState:
        status = QueryStatus.FAILED if failure is not None else QueryStatus.SUCCEEDED
        with self._lock:
            self._state = QueryState(status=status, result=result, error=failure)
            return self._state

"""
Flask web server for Pain Points Finder.

Routes
──────
GET  /              Form UI (company name XOR url, Markdown results)
POST /api/query     Submit {company_name, company_url}; returns the query state
GET  /api/state     Current query state for this browser session
POST /api/reset     Clear the result/error and return to idle

Each browser session gets its own QueryController, held in memory and keyed
by a random id in the signed session cookie. Nothing is persisted.
"""

from __future__ import annotations

import logging
import os
import sys
import threading
import uuid
from collections import OrderedDict
from collections.abc import Callable
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify, render_template, request, session

# Allow running as `python web/app.py` from the project root
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

load_dotenv()

from config.settings import Settings
from core.controller import QueryController
from core.models import QueryState, QueryStatus
from core.transport import ResponsesTransport, Transport

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

TransportFactory = Callable[[Settings], Transport]

#: HTTP status for a settled failure, keyed by QueryFailure.kind.
_FAILURE_STATUS: dict[str, int] = {
    "validation": 400,
    "transport": 502,
    "api": 502,
}


def _default_transport(settings: Settings) -> Transport:
    return ResponsesTransport(
        api_key=settings.openai_api_key,
        url=settings.responses_url,
        timeout=settings.request_timeout,
    )


def state_json(state: QueryState) -> dict:
    """Render a QueryState for the browser; the failure becomes plain text here."""
    return {
        "status": state.status.value,
        "content": state.result.content if state.result else None,
        "reasoning": state.result.reasoning if state.result else None,
        "error": state.error.message if state.error else None,
    }


def create_app(
    settings: Optional[Settings] = None,
    transport_factory: Optional[TransportFactory] = None,
) -> Flask:
    """Build the Flask application.

    Args:
        settings: Configuration; read from the environment when omitted.
        transport_factory: Builds the transport shared by all sessions.
            Tests pass one returning a fake.
    """
    settings = settings or Settings()
    if not settings.has_api_key:
        logger.warning("OPENAI_API_KEY is not set; queries will be rejected until it is")

    app = Flask(__name__)
    app.secret_key = settings.secret_key

    transport = (transport_factory or _default_transport)(settings)
    #: Most recently used last; capped at ``settings.max_sessions``.
    controllers: OrderedDict[str, QueryController] = OrderedDict()
    controllers_lock = threading.Lock()
    app.extensions["query_controllers"] = controllers

    def _evict_idle(keep: str) -> None:
        # Busy controllers are skipped; their number is bounded by worker threads.
        for sid in list(controllers):
            if len(controllers) <= settings.max_sessions:
                return
            if sid != keep and not controllers[sid].state.is_busy:
                del controllers[sid]
                logger.info("Evicted idle query session %s", sid)

    def find_controller() -> Optional[QueryController]:
        sid = session.get("sid")
        if sid is None:
            return None
        with controllers_lock:
            controller = controllers.get(sid)
            if controller is not None:
                controllers.move_to_end(sid)
        return controller

    def controller_for_submit() -> QueryController:
        controller = find_controller()
        if controller is not None:
            return controller
        sid = session["sid"] = uuid.uuid4().hex
        with controllers_lock:
            controller = controllers[sid] = QueryController(
                settings.openai_api_key, transport, model=settings.model
            )
            _evict_idle(keep=sid)
        return controller

    # ── UI ─────────────────────────────────────────────────────────────────

    @app.route("/")
    def index():
        return render_template("index.html")

    # ── Query API ──────────────────────────────────────────────────────────

    @app.route("/api/state")
    def get_state():
        controller = find_controller()
        return jsonify(state_json(controller.state if controller else QueryState()))

    @app.route("/api/reset", methods=["POST"])
    def reset():
        controller = find_controller()
        return jsonify(state_json(controller.reset() if controller else QueryState()))

    @app.route("/api/query", methods=["POST"])
    def submit_query():
        """Run one query for this session and return the settled state.

        JSON body:
          company_name  — used when company_url is empty
          company_url   — scopes the web search to the site's domain

        Responds 200 on success, 400 on invalid input, 502 when the API call
        fails and 409 if this session already has a query in flight.
        """
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            payload = {}
        controller = controller_for_submit()
        if controller.state.is_busy:
            return jsonify(state_json(controller.state)), 409

        try:
            state = controller.submit(
                company_name=str(payload.get("company_name") or ""),
                company_url=str(payload.get("company_url") or ""),
            )
        except Exception:
            logger.exception("Query failed unexpectedly")
            return jsonify({"status": QueryStatus.FAILED.value, "error": "Internal server error."}), 500

        if state.is_busy:
            return jsonify(state_json(state)), 409
        if state.status is QueryStatus.FAILED:
            return jsonify(state_json(state)), _FAILURE_STATUS[state.error.kind]
        return jsonify(state_json(state))

    return app


app = create_app()


# ── Entry point ────────────────────────────────────────────────────────────

if __name__ == "__main__":
    _settings = Settings()
    app.run(debug=_settings.debug, host="0.0.0.0", port=_settings.port)

"""Response normalisation.

The Responses API (and compatible proxies) return several body shapes. Each
shape has a matcher ``raw -> NormalizedResult | None``; matchers are tried in
``SHAPE_MATCHERS`` order and the first match wins:

1. ``output``       — list of typed items (``message``, ``reasoning``, tool calls)
2. ``choices``      — Chat Completions style ``choices[].message.content``
3. ``output_text``  — SDK convenience field holding the whole text

Anything else becomes a diagnostic result that embeds the raw body as a JSON
code block, so an unknown shape shows up in the UI instead of crashing it.
``normalize`` never raises.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Optional

from core.models import NormalizedResult

logger = logging.getLogger(__name__)

Matcher = Callable[[Any], Optional[NormalizedResult]]

FALLBACK_HEADER = "Could not parse standard response format. Raw Output:"


# ── Shape matchers ─────────────────────────────────────────────────────────


def _summary_text(summary: Any) -> Optional[str]:
    """Flatten a reasoning ``summary`` (string or list of summary parts)."""
    if isinstance(summary, str):
        return summary or None
    if isinstance(summary, list):
        parts = [
            part["text"]
            for part in summary
            if isinstance(part, dict) and isinstance(part.get("text"), str)
        ]
        return "\n\n".join(parts) or None
    return None


def match_output_items(raw: Any) -> Optional[NormalizedResult]:
    """Concatenate ``output_text`` parts of every ``message`` item, in order.

    The last ``reasoning`` item's summary becomes ``reasoning``. A list with
    no message items yields empty content, which is still a match.
    """
    if not isinstance(raw, dict) or not isinstance(raw.get("output"), list):
        return None

    content = ""
    reasoning: Optional[str] = None
    for item in raw["output"]:
        if not isinstance(item, dict):
            continue
        item_type = item.get("type")
        if item_type == "message":
            body = item.get("content")
            if isinstance(body, list):
                for part in body:
                    if (
                        isinstance(part, dict)
                        and part.get("type") == "output_text"
                        and isinstance(part.get("text"), str)
                    ):
                        content += part["text"]
            elif isinstance(body, str):
                content += body
        elif item_type == "reasoning":
            reasoning = _summary_text(item.get("summary"))

    return NormalizedResult(content=content, reasoning=reasoning)


def match_choices(raw: Any) -> Optional[NormalizedResult]:
    """Use the first ``choices[].message.content`` string."""
    if not isinstance(raw, dict) or not isinstance(raw.get("choices"), list):
        return None

    for choice in raw["choices"]:
        message = choice.get("message") if isinstance(choice, dict) else None
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            return NormalizedResult(content=message["content"])
    return None


def match_output_text(raw: Any) -> Optional[NormalizedResult]:
    if not isinstance(raw, dict):
        return None
    text = raw.get("output_text")
    if isinstance(text, str) and text:
        return NormalizedResult(content=text)
    return None


#: Precedence order; the first matcher returning a result wins.
SHAPE_MATCHERS: tuple[tuple[str, Matcher], ...] = (
    ("output", match_output_items),
    ("choices", match_choices),
    ("output_text", match_output_text),
)


# ── Fallback ───────────────────────────────────────────────────────────────


def diagnostic_result(raw: Any) -> NormalizedResult:
    """Wrap the raw body in a Markdown JSON block under a parse-failure notice."""
    try:
        dump = json.dumps(raw, indent=2, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        dump = repr(raw)
    return NormalizedResult(content=f"{FALLBACK_HEADER}\n```json\n{dump}\n```")


def normalize(raw: Any) -> NormalizedResult:
    """Extract display content and optional reasoning from a decoded API body.

    Args:
        raw: The decoded JSON body of a successful call (any JSON value).

    Returns:
        A ``NormalizedResult``; the diagnostic fallback when no shape matches.
    """
    for name, matcher in SHAPE_MATCHERS:
        result = matcher(raw)
        if result is not None:
            logger.debug("Response matched shape %r (%d chars)", name, len(result.content))
            return result

    keys = list(raw) if isinstance(raw, dict) else type(raw).__name__
    logger.warning("Unrecognised response shape, falling back to raw dump: %s", keys)
    return diagnostic_result(raw)

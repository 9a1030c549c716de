"""Outbound request construction.

Turns a ``SearchTarget`` into the body of one Responses API call:

- ``CompanyUrl``  → ``web_search`` restricted to the site's hostname,
                    and a prompt asking to search the provided url
- ``CompanyName`` → unrestricted ``web_search`` and a plain web-search prompt

Domain restriction only narrows search relevance. A URL that cannot be parsed
is used verbatim as the domain rather than rejected.
"""

from __future__ import annotations

import logging
from urllib.parse import urlparse

from core.models import (
    CompanyUrl,
    DomainFilter,
    Message,
    OutboundRequest,
    SearchTarget,
    ToolSpec,
)

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-5-nano"

_FORMAT_INSTRUCTION = "Format your response in clean Markdown with headers and bullet points."

#: Developer prompts keyed by target kind.
DEVELOPER_PROMPTS: dict[str, str] = {
    "url": (
        "You are a helpful assistant. Search the provided url and give me the "
        f"company pain points. {_FORMAT_INSTRUCTION}"
    ),
    "name": (
        "You are a helpful assistant. Do web search and give me the company "
        f"pain points. {_FORMAT_INSTRUCTION}"
    ),
}


def extract_domain(url: str) -> str:
    """Return the hostname of *url*, or *url* itself if it has none.

    Examples:
        >>> extract_domain("https://www.tesla.com/about")
        'www.tesla.com'
        >>> extract_domain("tesla.com")
        'tesla.com'
        >>> extract_domain("not a url")
        'not a url'
    """
    try:
        hostname = urlparse(url.strip()).hostname
    except ValueError:
        logger.debug("Unparseable company URL, using it verbatim: %r", url)
        return url
    return hostname or url


def build(target: SearchTarget, model: str = DEFAULT_MODEL) -> OutboundRequest:
    """Build the Responses API request for *target*.

    Always emits exactly one tool and two messages (developer, then user).
    The user message carries the text exactly as the user typed it, even when
    the tool filter uses the parsed hostname.

    Args:
        target: The company to research.
        model: Model identifier; a configuration value, never user input.

    Returns:
        The ``OutboundRequest`` to send.
    """
    if isinstance(target, CompanyUrl):
        tool = ToolSpec(filters=DomainFilter(allowed_domains=[extract_domain(target.value)]))
        query = f"Find pain points for {target.value}"
    else:
        tool = ToolSpec()
        query = f"Find pain points for company: {target.value}"

    return OutboundRequest(
        model=model,
        tools=[tool],
        input=[
            Message(role="developer", content=DEVELOPER_PROMPTS[target.kind]),
            Message(role="user", content=query),
        ],
    )

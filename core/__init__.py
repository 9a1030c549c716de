"""
Pain Points Finder core package.

Modules
───────
models           — Pydantic data models (SearchTarget, OutboundRequest, QueryState, …)
errors           — QueryError taxonomy (validation / transport / api)
request_builder  — SearchTarget → Responses API request body
normalizer       — raw response body → NormalizedResult, never raises
transport        — httpx POST to the Responses API
controller       — QueryController: validate → build → send → normalize
"""

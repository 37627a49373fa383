"""Structured logging helpers (PHI-safe).

Never pass tokens, access codes, or child names through here.
"""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    child_id: str | None = None,
    share_link_id: str | None = None,
    route: str | None = None,
    upstream_status: int | None = None,
) -> dict[str, Any]:
    """Return a PHI-safe log context dict."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = str(user_id)
    if child_id:
        context["child_id"] = str(child_id)
    if share_link_id:
        context["share_link_id"] = str(share_link_id)
    if route:
        context["route"] = route
    if upstream_status is not None:
        context["upstream_status"] = upstream_status
    return context

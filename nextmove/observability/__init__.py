"""
Observability: structured logging and request-scoped ids.

Usage:
    from nextmove.observability import RequestContext, configure_logging

    configure_logging("DEBUG")
    with RequestContext(user_id="u-1"):
        plan = build_daily_plan(...)
"""

from .context import RequestContext, generate_request_id, get_request_id, get_user_id
from .logging import HumanFormatter, JSONFormatter, configure_logging
from .middleware import CorrelationIdMiddleware

__all__ = [
    "configure_logging",
    "JSONFormatter",
    "HumanFormatter",
    "CorrelationIdMiddleware",
    "RequestContext",
    "generate_request_id",
    "get_request_id",
    "get_user_id",
]

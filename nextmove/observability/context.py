"""
Request-scoped context: request id and the user a plan is being built for.
"""

import contextvars
import uuid

_request_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("nextmove_request_id", default=None)
_user_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar("nextmove_user_id", default=None)


def get_request_id() -> str | None:
    return _request_id_var.get()


def get_user_id() -> str | None:
    return _user_id_var.get()


def generate_request_id() -> str:
    return f"nm-{uuid.uuid4().hex[:16]}"


class RequestContext:
    """
    Scope log records to one request (and optionally one user).

        with RequestContext(user_id="u-1") as ctx:
            build_daily_plan(...)   # every log line carries ctx.request_id

    Nested contexts restore the outer values on exit.
    """

    def __init__(self, request_id: str | None = None, user_id: str | None = None):
        self.request_id = request_id or generate_request_id()
        self.user_id = user_id
        self._tokens: list[tuple[contextvars.ContextVar, contextvars.Token]] = []

    def __enter__(self) -> "RequestContext":
        self._tokens.append((_request_id_var, _request_id_var.set(self.request_id)))
        if self.user_id is not None:
            self._tokens.append((_user_id_var, _user_id_var.set(self.user_id)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)

from __future__ import annotations

from contextvars import ContextVar

_corr_id_ctx: ContextVar[str | None] = ContextVar("corr_id", default=None)


def current_corr_id() -> str | None:
    """Correlation id of the tool call running in this context, if any."""
    return _corr_id_ctx.get()


def bind_corr_id(corr_id: str | None) -> None:
    _corr_id_ctx.set(corr_id)

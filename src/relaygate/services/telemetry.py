"""Verbose-mode timing spans: Span, trace_span, @traced.

Off by default, and then the only cost is one ContextVar lookup per call.
``--verbose`` switches it on; each @traced service method then roots a
span tree and returns it under ``ServiceResult.meta["telemetry"]``.
Membership searches annotate their span with the derivation count.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, ParamSpec, TypeVar

import structlog

from relaygate.services.result import ServiceResult

_enabled: ContextVar[bool] = ContextVar("relaygate_telemetry", default=False)
_current_span: ContextVar[Span | None] = ContextVar("relaygate_span", default=None)


@dataclass
class Span:
    """One timed region; children are regions opened while it was active."""

    name: str
    parent: Span | None = field(default=None, repr=False)
    children: list[Span] = field(default_factory=list)
    annotations: dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.perf_counter)
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        """Elapsed milliseconds, or 0.0 while still open."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000

    def end(self) -> None:
        self.end_time = time.perf_counter()

    def annotate(self, key: str, value: Any) -> None:
        self.annotations[key] = value

    def child(self, name: str) -> Span:
        """Start a nested span and attach it to this one."""
        span = Span(name=name, parent=self)
        self.children.append(span)
        return span

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "duration_ms": round(self.duration_ms, 2)}
        if self.annotations:
            data["annotations"] = dict(self.annotations)
        if self.children:
            data["children"] = [c.to_dict() for c in self.children]
        return data


@contextmanager
def _activated(span: Span) -> Generator[Span]:
    token = _current_span.set(span)
    try:
        yield span
    finally:
        span.end()
        _current_span.reset(token)


@contextmanager
def trace_span(name: str) -> Generator[Span | None]:
    """Open a child of the active span for the duration of the block.

    Yields None, recording nothing, when telemetry is off or no @traced
    call is in progress.
    """
    parent = _current_span.get() if _enabled.get() else None
    if parent is None:
        yield None
        return
    with _activated(parent.child(name)) as span:
        yield span


def _log_span(span: Span, *, ok: bool) -> None:
    structlog.get_logger("relaygate.telemetry").debug(
        "span.complete",
        span_name=span.name,
        duration_ms=round(span.duration_ms, 2),
        ok=ok,
        children=len(span.children),
    )


_P = ParamSpec("_P")
_R = TypeVar("_R")


def traced(func: Callable[_P, _R]) -> Callable[_P, _R]:  # noqa: UP047
    """Root a span tree at each call and attach it to the returned ServiceResult.

    Non-ServiceResult return values pass through untouched; the span is
    still logged.
    """

    @functools.wraps(func)
    def wrapper(*args: _P.args, **kwargs: _P.kwargs) -> _R:
        if not _enabled.get():
            return func(*args, **kwargs)

        root = Span(name=func.__qualname__)
        ok = False
        try:
            with _activated(root):
                result = func(*args, **kwargs)
            ok = True
        finally:
            _log_span(root, ok=ok)

        if isinstance(result, ServiceResult):
            meta = {**(result.meta or {}), "telemetry": root.to_dict()}
            return result.model_copy(update={"meta": meta})  # type: ignore[return-value]
        return result

    return wrapper


def enable_telemetry() -> None:
    """Turn span collection on for the current context (``--verbose``)."""
    _enabled.set(True)


def disable_telemetry() -> None:
    _enabled.set(False)


def get_current_span() -> Span | None:
    """The innermost open span, for manual annotation; None when off."""
    return _current_span.get() if _enabled.get() else None

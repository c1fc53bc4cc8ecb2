"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All CLI-facing service methods return ServiceResult.
Policy decisions travel as :class:`~relaygate.domain.types.PolicyDecision`
and are wrapped into a ServiceResult only at the CLI boundary.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from relaygate.domain.errors import RelaygateError


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: str
    message: str
    detail: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: RelaygateError) -> ServiceError:
        return cls(code=exc.code, message=str(exc))


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"derive_keys"``).
        data: Operation-specific payload on success.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, counts, etc.).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: dict[str, Any] = Field(default_factory=dict)
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(cls, op: str, exc: RelaygateError) -> ServiceResult:
        return cls(ok=False, op=op, error=ServiceError.from_exception(exc))

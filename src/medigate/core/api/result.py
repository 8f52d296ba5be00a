"""Uniform result type returned by every data-access operation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApiResult:
    """Tagged success/failure result.

    Expected failures (bad credentials, timeouts, 404s) are returned as
    ``ApiResult.fail(...)`` rather than raised, so callers branch on
    ``result.success`` instead of catching exceptions.
    """

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None
    status_code: int | None = None

    @classmethod
    def ok(
        cls, data: Any = None, message: str | None = None, status_code: int | None = None
    ) -> ApiResult:
        """Factory for successful result."""
        return cls(success=True, data=data, message=message, status_code=status_code)

    @classmethod
    def fail(cls, error: str, status_code: int | None = None) -> ApiResult:
        """Factory for failed result."""
        return cls(success=False, error=error, status_code=status_code)

    def map(self, fn: Callable[[Any], Any]) -> ApiResult:
        """Transform ``data`` of a successful result; failures pass through.

        Response data that ``fn`` cannot interpret turns the result into a
        failure instead of raising.
        """
        if not self.success:
            return self
        try:
            return replace(self, data=fn(self.data))
        except (TypeError, ValueError, KeyError, AttributeError) as exc:
            logger.warning("Malformed response data: %s", exc)
            return ApiResult.fail(f"Malformed response data: {exc}", self.status_code)

    def to_dict(self) -> dict[str, Any]:
        """Wire-style ``{success, data}`` / ``{success, error}`` dict."""
        if self.success:
            out: dict[str, Any] = {"success": True, "data": self.data}
            if self.message:
                out["message"] = self.message
            return out
        return {"success": False, "error": self.error}

    def __bool__(self) -> bool:
        return self.success

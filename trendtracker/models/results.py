"""Result values for batch jobs and scheduler runs."""

from datetime import datetime
from typing import Any, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ItemResult(BaseModel, Generic[T]):
    """Outcome of processing one item (usually one instrument) in a batch."""

    key: str = Field(..., description="Item identifier, e.g. the symbol")
    value: Optional[T] = Field(default=None, description="Produced value on success")
    error: Optional[str] = Field(default=None, description="Failure cause")

    model_config = {"frozen": True}

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, key: str, value: T) -> "ItemResult[T]":
        return cls(key=key, value=value)

    @classmethod
    def failure(cls, key: str, error: BaseException | str) -> "ItemResult[T]":
        if isinstance(error, BaseException):
            error = f"{type(error).__name__}: {error}"
        return cls(key=key, error=error)


class BatchOutcome(BaseModel, Generic[T]):
    """Aggregated per-item results of one batch job invocation."""

    results: list[ItemResult[T]] = Field(default_factory=list)

    def add(self, result: ItemResult[T]) -> None:
        self.results.append(result)

    @property
    def succeeded(self) -> list[ItemResult[T]]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[ItemResult[T]]:
        return [r for r in self.results if not r.ok]

    @property
    def values(self) -> list[T]:
        return [r.value for r in self.results if r.ok and r.value is not None]

    def counts(self) -> dict[str, int]:
        """Summary counts for logging."""
        return {
            "total": len(self.results),
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
        }


TaskStatus = Literal["succeeded", "failed", "skipped"]


class TaskRun(BaseModel):
    """Record of one scheduler task firing."""

    task: str = Field(..., description="Task name")
    status: TaskStatus = Field(..., description="Run status")
    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: Optional[datetime] = Field(default=None)
    summary: dict[str, Any] = Field(default_factory=dict, description="Summary counts")
    error: Optional[str] = Field(default=None, description="Failure cause")

    model_config = {"frozen": True}

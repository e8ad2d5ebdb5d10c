"""Delivery report model."""

from pydantic import BaseModel, Field


class DeliveryReport(BaseModel):
    """Outcome of delivering one closed session."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    batches: int = 0
    failures: list[str] = Field(default_factory=list)
    failures_omitted: int = 0

    @property
    def all_delivered(self) -> bool:
        return self.failed == 0

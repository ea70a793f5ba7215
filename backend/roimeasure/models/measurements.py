"""Measurement list — the structured output of the measurement manager."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class MeasurementList(BaseModel):
    """Ordered, immutable mapping from measurement name to value.

    Values may be NaN (e.g. a percentage when no pixels were counted).
    """

    model_config = ConfigDict(frozen=True)

    measurements: dict[str, float] = Field(default_factory=dict)

    @property
    def names(self) -> list[str]:
        return list(self.measurements)

    def get(self, name: str) -> float | None:
        return self.measurements.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.measurements

    def __getitem__(self, name: str) -> float:
        return self.measurements[name]

    def __len__(self) -> int:
        return len(self.measurements)

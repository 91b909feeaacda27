"""Internal therapy profile schemas.

These are the four settings documents the dosing logic reads from local
storage. Each is overwritten wholesale by a profile import.
"""

import enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class GlucoseUnits(str, enum.Enum):
    """Glucose units for sensitivities and targets."""

    MG_DL = "mg/dL"
    MMOL_L = "mmol/L"

    @classmethod
    def from_remote(cls, token: str | None) -> "GlucoseUnits":
        """Resolve a remote profile's unit string.

        Only an exact mmol/L token selects mmol/L; anything else, including a
        missing value, falls back to mg/dL.
        """
        if token == cls.MMOL_L.value:
            return cls.MMOL_L
        return cls.MG_DL


class CarbUnit(str, enum.Enum):
    GRAMS = "grams"


class CarbRatioEntry(BaseModel):
    start: str
    offset: int
    ratio: float


class CarbRatios(BaseModel):
    units: CarbUnit = CarbUnit.GRAMS
    schedule: list[CarbRatioEntry]


class BasalProfileEntry(BaseModel):
    start: str
    minutes: int
    rate: float


class InsulinSensitivityEntry(BaseModel):
    sensitivity: float
    offset: int
    start: str


class InsulinSensitivities(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    units: GlucoseUnits
    user_preferred_units: GlucoseUnits
    sensitivities: list[InsulinSensitivityEntry]


class BGTargetEntry(BaseModel):
    """A single point target for a time-of-day segment.

    The application has no target range, so ``low`` and ``high`` always hold
    the same value.
    """

    low: float
    high: float
    start: str
    offset: int

    @model_validator(mode="after")
    def validate_point_target(self) -> "BGTargetEntry":
        if self.low != self.high:
            raise ValueError(
                f"BG target must be a point target (low={self.low}, high={self.high})"
            )
        return self

    @classmethod
    def point(cls, value: float, start: str, offset: int) -> "BGTargetEntry":
        return cls(low=value, high=value, start=start, offset=offset)


class BGTargets(BaseModel):
    units: GlucoseUnits
    user_preferred_units: GlucoseUnits
    targets: list[BGTargetEntry] = Field(default_factory=list)

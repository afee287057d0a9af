from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal


class SettingsUpdateRequest(BaseModel):
    updates: Dict[str, Any]


class SimManualRequest(BaseModel):
    lux: float = Field(ge=0)


class SimPatternRequest(BaseModel):
    type: Literal["sine", "step", "ramp", "random", "flicker"]
    baseline: float = 60.0
    amplitude: float = 40.0
    period_s: float = Field(default=600.0, gt=0)
    noise: float = Field(default=1.0, ge=0)
    spike_every_s: float = Field(default=30.0, gt=0)
    spike_length_s: float = Field(default=2.0, ge=0)


class SimLidRequest(BaseModel):
    closed: bool


class SimAppearanceRequest(BaseModel):
    appearance: Literal["light", "dark"]

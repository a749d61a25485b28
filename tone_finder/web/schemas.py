from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _Model(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class InitMessage(_Model):
    type: Literal["init"]
    sample_rate: int = Field(alias="sampleRate", ge=8_000, le=192_000)
    block_size: int = Field(alias="blockSize", default=4096, ge=64, le=65_536)


class TransportPingMessage(_Model):
    type: Literal["transport_ping"]
    client_ts: float = Field(alias="clientTs")


class StatusEvent(_Model):
    type: Literal["status"] = "status"
    message: str


class ErrorEvent(_Model):
    type: Literal["error"] = "error"
    code: str
    message: str


class AnalysisPayload(_Model):
    frequency: float = Field(gt=0.0)
    note: str
    octave: int
    cents_off: float = Field(alias="centsOff")


class DisplayPayload(_Model):
    frequency: str
    tone: str
    tuning: str


class AnalysisEvent(_Model):
    type: Literal["analysis"] = "analysis"
    t: float
    result: AnalysisPayload | None
    display: DisplayPayload


class AnalyzeResponse(_Model):
    sample_rate: int = Field(alias="sampleRate")
    block_size: int = Field(alias="blockSize")
    results: list[AnalysisPayload | None]
    dominant: AnalysisPayload | None

from __future__ import annotations

from dataclasses import dataclass

from tone_finder.analyzer import AnalysisResult

NO_DATA = "No data"
NO_TONE = "No clear tone detected"
IN_TUNE = "In tune"
IN_TUNE_CENTS = 5.0


@dataclass(frozen=True)
class DisplayState:
    frequency: str
    tone: str
    tuning: str

    def as_line(self) -> str:
        return f"{self.frequency:>12}  {self.tone:<8}{self.tuning}"

    def to_dict(self) -> dict[str, str]:
        return {"frequency": self.frequency, "tone": self.tone, "tuning": self.tuning}


def format_frequency(frequency: float) -> str:
    return f"{frequency:.2f} Hz"


def format_tone(result: AnalysisResult) -> str:
    return result.label


def format_tuning(cents_off: float) -> str:
    if abs(cents_off) < IN_TUNE_CENTS:
        return IN_TUNE
    direction = "sharp" if cents_off > 0 else "flat"
    return f"{abs(cents_off):.1f} cents {direction}"


def render(result: AnalysisResult | None) -> DisplayState:
    if result is None:
        return DisplayState(frequency=NO_DATA, tone=NO_DATA, tuning=NO_TONE)
    return DisplayState(
        frequency=format_frequency(result.frequency),
        tone=format_tone(result),
        tuning=format_tuning(result.cents_off),
    )

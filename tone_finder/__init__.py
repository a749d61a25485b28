from __future__ import annotations

from tone_finder.analyzer import AnalysisResult, AnalyzerConfig, FrequencyAnalyzer

__version__ = "0.1.0"

__all__ = ["AnalysisResult", "AnalyzerConfig", "FrequencyAnalyzer", "__version__"]

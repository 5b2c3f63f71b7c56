# ============================================================================
# src/thermal_log_ocr/core/confidence.py
# ============================================================================
"""
Confidence Scoring and Aggregation

Provides utilities for:
- Combining weighted candidate signals into a score
- Averaging confidence values of fields and checks
- Determining confidence levels
"""

from typing import Dict, List, Optional
from dataclasses import dataclass
import statistics

# Candidate signal names
PATTERN_QUALITY = "pattern_quality"
RANGE = "range"
SPATIAL = "spatial"
CONTEXT = "context"
DISTINCTIVENESS = "distinctiveness"
OCR_QUALITY = "ocr_quality"


@dataclass(frozen=True)
class ScoringWeights:
    """Weights applied to candidate signals on top of the base score"""
    base: float = 0.5
    pattern_quality: float = 0.20
    range_in: float = 0.25
    range_out_penalty: float = 0.30
    spatial: float = 0.20
    context: float = 0.15
    distinctiveness: float = 0.10
    ocr_quality: float = 0.10

    @classmethod
    def from_settings(cls, settings) -> "ScoringWeights":
        return cls(
            base=settings.BASE_CONFIDENCE,
            pattern_quality=settings.WEIGHT_PATTERN_QUALITY,
            range_in=settings.WEIGHT_RANGE_IN,
            range_out_penalty=settings.WEIGHT_RANGE_OUT_PENALTY,
            spatial=settings.WEIGHT_SPATIAL,
            context=settings.WEIGHT_CONTEXT,
            distinctiveness=settings.WEIGHT_DISTINCTIVENESS,
            ocr_quality=settings.WEIGHT_OCR_QUALITY,
        )


@dataclass
class ConfidenceThresholds:
    """Confidence level thresholds"""
    high: float = 0.8
    acceptable: float = 0.6

    def get_level(self, score: float) -> str:
        """
        Get confidence level from score.

        Args:
            score: Confidence score (0.0-1.0)

        Returns:
            Level string: "high", "acceptable", or "low"
        """
        if score >= self.high:
            return "high"
        elif score >= self.acceptable:
            return "acceptable"
        else:
            return "low"


def clamp_confidence(score: float) -> float:
    return max(0.0, min(1.0, score))


class ConfidenceCalculator:
    """
    Utility class for scoring candidates and aggregating confidence scores.
    """

    def __init__(self, weights: Optional[ScoringWeights] = None):
        """
        Initialize calculator.

        Args:
            weights: Candidate signal weights
        """
        self.weights = weights or ScoringWeights()

    def raw_score(self, signals: Dict[str, float]) -> float:
        """
        Combine candidate signals into an unclamped score.

        Every signal except range is in [0, 1] and scaled by its weight.
        The range signal is +1 (inside the expected range), -1 (outside)
        or 0 (no range defined).

        Args:
            signals: Signal name -> signal value

        Returns:
            Base score plus the weighted signals, not clamped
        """
        w = self.weights
        score = w.base
        score += signals.get(PATTERN_QUALITY, 0.0) * w.pattern_quality

        range_signal = signals.get(RANGE, 0.0)
        if range_signal > 0:
            score += w.range_in
        elif range_signal < 0:
            score -= w.range_out_penalty

        score += signals.get(SPATIAL, 0.0) * w.spatial
        score += signals.get(CONTEXT, 0.0) * w.context
        score += signals.get(DISTINCTIVENESS, 0.0) * w.distinctiveness
        score += signals.get(OCR_QUALITY, 0.0) * w.ocr_quality
        return score

    def score(self, signals: Dict[str, float]) -> float:
        """Clamped candidate confidence (0.0-1.0)."""
        return clamp_confidence(self.raw_score(signals))

    def aggregate(self, scores: List[float]) -> float:
        """
        Mean of the valid scores.

        Args:
            scores: List of confidence scores (0.0-1.0)

        Returns:
            Aggregated confidence score (0.0-1.0); 0.0 without valid scores
        """
        # Filter out invalid scores
        valid_scores = [s for s in scores if 0.0 <= s <= 1.0]
        if not valid_scores:
            return 0.0
        return statistics.mean(valid_scores)


def calculate_confidence(scores: List[float]) -> float:
    """Average confidence of fields or checks (0.0 when there are none)."""
    return ConfidenceCalculator().aggregate(scores)


def get_confidence_level(score: float) -> str:
    """
    Get confidence level from score.

    Args:
        score: Confidence score (0.0-1.0)

    Returns:
        Level string: "high", "acceptable", or "low"
    """
    thresholds = ConfidenceThresholds()
    return thresholds.get_level(score)

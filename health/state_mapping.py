from core.telemetry import HealthTrend


def score_to_trend(score, improving_above=80, stable_above=60) -> HealthTrend:
    """
    Map health score (0–100) to trend.
    Uses the unrounded score: 80.4 is "improving" though it rounds to 80.
    """
    if score > improving_above:
        return HealthTrend.IMPROVING
    elif score > stable_above:
        return HealthTrend.STABLE
    return HealthTrend.DEGRADING

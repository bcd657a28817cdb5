# health/device_health_score.py
from core.telemetry import (
    DeviceHealthScore,
    finite_float,
    round_half_up,
    utc_now,
)
from health.state_mapping import score_to_trend


class HealthScoreCalculator:
    def __init__(self, neutral_score=50, improving_above=80, stable_above=60, clock=utc_now):
        self.neutral_score = neutral_score
        self.improving_above = improving_above
        self.stable_above = stable_above
        self.clock = clock

    def calculate(self, device_id: str, metrics: dict, baselines: dict) -> DeviceHealthScore:
        """
        Device Health Score (0–100)

        component = min(100, value / baseline * 100)
        overall   = mean(components), neutral score if no metric has a baseline

        Stateless: depends only on the arguments.
        """
        scores = {}

        for metric, raw in metrics.items():
            baseline = finite_float(baselines.get(metric))
            value = finite_float(raw)
            if not baseline or value is None:
                continue

            scores[metric] = min(100.0, (value / baseline) * 100.0)

        overall = (
            sum(scores.values()) / len(scores) if scores else self.neutral_score
        )

        return DeviceHealthScore(
            device_id=device_id,
            overall_score=round_half_up(overall),
            component_scores=scores,
            trend=score_to_trend(overall, self.improving_above, self.stable_above),
            last_updated=self.clock(),
        )

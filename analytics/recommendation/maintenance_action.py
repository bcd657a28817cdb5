# analytics/recommendation/maintenance_action.py

import yaml
from pathlib import Path

from core.telemetry import RiskLevel


class MaintenanceActionMapper:
    def __init__(self, mapping_file: str | None = None, lang: str = "en"):
        if mapping_file is None:
            mapping_file = Path(__file__).parent / "mapping.yaml"

        with open(mapping_file, "r", encoding="utf-8") as f:
            self.mapping = (yaml.safe_load(f) or {}).get("risk_levels", {})

        self.lang = lang

    def get_action(self, risk_level: RiskLevel | str, lang: str | None = None) -> dict:
        level = RiskLevel(risk_level).value

        level_cfg = self.mapping.get(level)
        if not level_cfg:
            raise KeyError(f"No maintenance action mapped for risk level {level!r}")

        return {
            "priority": int(level_cfg["priority"]),
            "estimated_duration_hours": float(level_cfg["estimated_duration_hours"]),
            "action_code": level_cfg.get("action_code", "NO_ACTION"),
            "action_text": self._pick_lang(level_cfg.get("action_text", {}), lang or self.lang),
        }

    @staticmethod
    def _pick_lang(text_block, lang: str) -> str:
        if not isinstance(text_block, dict):
            return str(text_block or "")
        return text_block.get(lang) or text_block.get("en", "")

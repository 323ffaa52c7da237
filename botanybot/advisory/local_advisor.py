"""
Local Heuristic Advisor

Deterministic rule-based soil advisory used when no analysis service is
configured, and as the fallback when the service fails.

Findings are evaluated independently and listed in the order moisture,
pH, temperature, light. The recommended action is the first matching
rule by priority.
"""

from dataclasses import dataclass
from typing import List

from botanybot.core.types import SoilMetrics

from .base import SoilAdvisoryProvider

NORMAL_SUMMARY = "within normal range"

ACTION_IRRIGATE = "briefly irrigate"
ACTION_PAUSE_IRRIGATION = "pause irrigation"
ACTION_SHADE = "increase shading or rotate away from light"
ACTION_SEEK_LIGHT = "reorient toward light"
ACTION_MAINTAIN = "maintain current settings"


@dataclass(frozen=True)
class AdvisoryThresholds:
    """Rule limits; readings strictly beyond a limit trigger a finding"""
    moisture_low: float = 35
    moisture_high: float = 70
    ph_low: float = 6.0
    ph_high: float = 7.5
    temperature_low: float = 18
    temperature_high: float = 30
    light_low: float = 500
    light_high: float = 5000


class LocalHeuristicAdvisor(SoilAdvisoryProvider):
    """Rule-based advisory, no network involved"""

    name = "local"

    def __init__(self, thresholds: AdvisoryThresholds = AdvisoryThresholds()):
        self.thresholds = thresholds

    def findings(self, metrics: SoilMetrics) -> List[str]:
        t = self.thresholds
        found = []

        if metrics.moisture < t.moisture_low:
            found.append("moisture low")
        elif metrics.moisture > t.moisture_high:
            found.append("moisture high")

        if metrics.ph < t.ph_low:
            found.append("pH acidic")
        elif metrics.ph > t.ph_high:
            found.append("pH alkaline")

        if metrics.temperature < t.temperature_low:
            found.append("temperature low")
        elif metrics.temperature > t.temperature_high:
            found.append("temperature high")

        if metrics.light_level < t.light_low:
            found.append("light weak")
        elif metrics.light_level > t.light_high:
            found.append("light strong")

        return found

    def summarize(self, metrics: SoilMetrics) -> str:
        found = self.findings(metrics)
        return ", ".join(found) if found else NORMAL_SUMMARY

    def recommend(self, metrics: SoilMetrics) -> str:
        t = self.thresholds
        if metrics.moisture < t.moisture_low:
            return ACTION_IRRIGATE
        if metrics.moisture > t.moisture_high:
            return ACTION_PAUSE_IRRIGATION
        if metrics.light_level > t.light_high:
            return ACTION_SHADE
        if metrics.light_level < t.light_low:
            return ACTION_SEEK_LIGHT
        return ACTION_MAINTAIN

    def compose(self, metrics: SoilMetrics) -> str:
        return f"Soil status: {self.summarize(metrics)}. Recommended action: {self.recommend(metrics)}."

    async def analyze(self, metrics: SoilMetrics) -> str:
        return self.compose(metrics)

"""
Test Local Heuristic Advisor

Deterministic soil rules used without an analysis service.
"""

import pytest

from botanybot.advisory import ANALYSIS_UNAVAILABLE, LocalHeuristicAdvisor, build_advisory_prompt
from botanybot.advisory.local_advisor import (
    ACTION_IRRIGATE, ACTION_MAINTAIN, ACTION_PAUSE_IRRIGATION, ACTION_SEEK_LIGHT,
    ACTION_SHADE, NORMAL_SUMMARY, AdvisoryThresholds
)
from botanybot.core.types import SoilMetrics


def metrics(moisture=50, ph=6.5, nitrogen=120, temperature=22, light_level=1500):
    return SoilMetrics(moisture=moisture, ph=ph, nitrogen=nitrogen,
                       temperature=temperature, light_level=light_level)


@pytest.fixture
def advisor():
    return LocalHeuristicAdvisor()


class TestLocalHeuristicAdvisor:
    """Test rule evaluation and text composition"""

    @pytest.mark.asyncio
    async def test_dry_soil(self, advisor):
        text = await advisor.analyze(metrics(moisture=20))
        assert "moisture low" in text
        assert ACTION_IRRIGATE in text

    @pytest.mark.asyncio
    async def test_normal_soil(self, advisor):
        text = await advisor.analyze(metrics(moisture=50))
        assert NORMAL_SUMMARY in text
        assert ACTION_MAINTAIN in text
        assert text == (f"Soil status: {NORMAL_SUMMARY}. "
                        f"Recommended action: {ACTION_MAINTAIN}.")

    @pytest.mark.parametrize("reading,finding", [
        ({'moisture': 80}, "moisture high"),
        ({'ph': 5.5}, "pH acidic"),
        ({'ph': 8.0}, "pH alkaline"),
        ({'temperature': 10}, "temperature low"),
        ({'temperature': 35}, "temperature high"),
        ({'light_level': 100}, "light weak"),
        ({'light_level': 8000}, "light strong"),
    ])
    def test_single_findings(self, advisor, reading, finding):
        assert advisor.findings(metrics(**reading)) == [finding]

    def test_boundaries_are_normal(self, advisor):
        edge = metrics(moisture=35, ph=7.5, temperature=18, light_level=5000)
        assert advisor.findings(edge) == []
        assert advisor.summarize(edge) == NORMAL_SUMMARY

    def test_findings_keep_metric_order(self, advisor):
        reading = metrics(moisture=10, ph=5.0, temperature=40, light_level=50)
        assert advisor.summarize(reading) == "moisture low, pH acidic, temperature high, light weak"

    @pytest.mark.parametrize("reading,action", [
        ({'moisture': 10, 'light_level': 9000}, ACTION_IRRIGATE),
        ({'moisture': 90, 'light_level': 9000}, ACTION_PAUSE_IRRIGATION),
        ({'light_level': 9000}, ACTION_SHADE),
        ({'light_level': 100}, ACTION_SEEK_LIGHT),
        ({'ph': 5.0, 'temperature': 35}, ACTION_MAINTAIN),
    ])
    def test_action_priority(self, advisor, reading, action):
        assert advisor.recommend(metrics(**reading)) == action

    def test_custom_thresholds(self):
        strict = LocalHeuristicAdvisor(AdvisoryThresholds(moisture_low=60))
        assert strict.recommend(metrics(moisture=50)) == ACTION_IRRIGATE

    @pytest.mark.asyncio
    async def test_deterministic(self, advisor):
        reading = metrics(moisture=72, light_level=300)
        first = await advisor.analyze(reading)
        second = await advisor.analyze(reading)
        assert first == second
        assert first != ANALYSIS_UNAVAILABLE


class TestAdvisoryPrompt:
    """Test prompt construction for the remote service"""

    def test_prompt_contains_all_metrics(self):
        prompt = build_advisory_prompt(metrics(moisture=42, ph=6.3, nitrogen=150,
                                               temperature=24, light_level=3200))
        for value in ("42", "6.3", "150", "24", "3200"):
            assert value in prompt

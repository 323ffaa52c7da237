"""
Soil Advisory Module

Turns probe readings into operator advice:
- Remote analysis service client
- Deterministic local heuristic (also the remote fallback)
"""

import logging

from botanybot.core.config_manager import AdvisoryConfig

from .base import ANALYSIS_UNAVAILABLE, SoilAdvisoryProvider, build_advisory_prompt
from .local_advisor import AdvisoryThresholds, LocalHeuristicAdvisor
from .remote_advisor import RemoteAdvisoryProvider

logger = logging.getLogger(__name__)


def create_advisory_provider(config: AdvisoryConfig) -> SoilAdvisoryProvider:
    """Pick the advisory strategy once, based on credential presence"""
    if config.has_credential:
        logger.info(f"Soil advisory: remote service at {config.endpoint}")
        return RemoteAdvisoryProvider(config, fallback=LocalHeuristicAdvisor())

    logger.info("Soil advisory: no credential configured, using local heuristic")
    return LocalHeuristicAdvisor()


__all__ = [
    'ANALYSIS_UNAVAILABLE',
    'AdvisoryThresholds',
    'LocalHeuristicAdvisor',
    'RemoteAdvisoryProvider',
    'SoilAdvisoryProvider',
    'build_advisory_prompt',
    'create_advisory_provider'
]

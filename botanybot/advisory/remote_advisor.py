"""
Remote Soil Advisor

Sends the filled prompt to an external analysis service and returns its
free-text answer. Any failure (network, HTTP error, malformed body) is
logged and answered by the fallback provider instead, so analyze()
always returns text.

Request:  POST <endpoint>  {"model": ..., "prompt": ...}
          Authorization: Bearer <api_key>
Response: {"text": "..."}
"""

import asyncio
import functools
import logging
from typing import Optional

import requests

from botanybot.core.config_manager import AdvisoryConfig
from botanybot.core.exceptions import AdvisoryConnectionError, AdvisoryResponseError
from botanybot.core.types import SoilMetrics

from .base import ANALYSIS_UNAVAILABLE, SoilAdvisoryProvider, build_advisory_prompt
from .local_advisor import LocalHeuristicAdvisor

logger = logging.getLogger(__name__)


class RemoteAdvisoryProvider(SoilAdvisoryProvider):
    """Analysis service client with local fallback"""

    name = "remote"

    def __init__(self, config: AdvisoryConfig,
                 fallback: Optional[SoilAdvisoryProvider] = None,
                 session: Optional[requests.Session] = None):
        self.config = config
        self.fallback = fallback or LocalHeuristicAdvisor()
        self.session = session or requests.Session()
        self.fallback_count = 0

    async def analyze(self, metrics: SoilMetrics) -> str:
        prompt = build_advisory_prompt(metrics)
        try:
            loop = asyncio.get_running_loop()
            text = await loop.run_in_executor(None, functools.partial(self._request_analysis, prompt))
        except Exception as e:
            self.fallback_count += 1
            logger.warning(f"Remote soil analysis failed, using {self.fallback.name} advisory: {e}")
            return await self.fallback.analyze(metrics)

        if not text:
            logger.info("Remote soil analysis returned no text")
            return ANALYSIS_UNAVAILABLE

        logger.info("Remote soil analysis received")
        return text

    def _request_analysis(self, prompt: str) -> str:
        headers = {'Authorization': f"Bearer {self.config.api_key}"}
        payload = {'model': self.config.model, 'prompt': prompt}

        try:
            response = self.session.post(self.config.endpoint, json=payload,
                                         headers=headers, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise AdvisoryConnectionError(f"Analysis service request failed: {e}", module="advisory")

        try:
            body = response.json()
        except ValueError as e:
            raise AdvisoryResponseError(f"Analysis service returned invalid JSON: {e}", module="advisory")

        if not isinstance(body, dict):
            raise AdvisoryResponseError("Analysis service returned an unexpected body", module="advisory")

        text = body.get('text') or ''
        return str(text).strip()

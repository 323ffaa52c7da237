"""
Soil Advisory Interface

Turns a soil metrics snapshot into a short human-readable status report
with one recommended actuator action. Providers never raise: whatever
happens, the caller gets text back.
"""

from abc import ABC, abstractmethod

from botanybot.core.types import SoilMetrics

ANALYSIS_UNAVAILABLE = "Analysis unavailable: no recommendation was generated."

ADVISORY_PROMPT_TEMPLATE = """\
You are a botanist assistant embedded in a gardening robot.
Analyse the following soil sensor readings from a mixed flower bed
(shade-loving plants such as ferns and sun-loving plants such as petunias).

Sensor data:
- Moisture: {moisture}%
- pH: {ph}
- Nitrogen: {nitrogen} ppm
- Temperature: {temperature}°C
- Light level: {light_level} lux

Give a concise status report (no more than two sentences) and one concrete
recommendation for the robot's actuators (irrigation, shutter or rotating
platform). Keep the tone professional, objective and helpful.
"""


def build_advisory_prompt(metrics: SoilMetrics) -> str:
    """Fill the prompt template with the five metric fields"""
    return ADVISORY_PROMPT_TEMPLATE.format(**metrics.to_dict())


class SoilAdvisoryProvider(ABC):
    """Strategy producing advisory text from soil metrics"""

    name = "abstract"

    @abstractmethod
    async def analyze(self, metrics: SoilMetrics) -> str:
        """
        Produce advisory text

        Must not raise; failures are handled inside the provider.
        """
        pass

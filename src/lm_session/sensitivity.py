"""
Sensitivity rating of free text via the model.

The model is asked for a 0-100 rating against five bands plus a short
justification. The rating is scraped from the reply as the first integer in
the text; a reply without digits rates 0 rather than failing.
"""

import re
from dataclasses import asdict, dataclass

from loguru import logger

from lm_session.prompter import Prompter, require_text

# (lowest, highest, label, description)
SENSITIVITY_BANDS: tuple[tuple[int, int, str, str], ...] = (
    (0, 20, "safe", "Safe for all audiences"),
    (21, 40, "mild", "Mild sensitivity"),
    (41, 60, "moderate", "Moderate sensitivity"),
    (61, 80, "high", "High sensitivity"),
    (81, 100, "extreme", "Extreme sensitivity"),
)

MAX_SENSITIVITY_LEVEL = 100

_INTEGER = re.compile(r"\d+")


@dataclass(frozen=True)
class SensitivityAnalysis:
    """Rating of one input text."""

    text: str
    sensitivity_level: int  # 0-100
    explanation: str | None = None

    @property
    def band(self) -> str:
        return band_for_level(self.sensitivity_level)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["band"] = self.band
        return data


def band_for_level(level: int) -> str:
    for lowest, highest, label, _ in SENSITIVITY_BANDS:
        if lowest <= level <= highest:
            return label
    raise ValueError(f"Sensitivity level out of range: {level}")


def build_sensitivity_prompt(text: str) -> str:
    bands = "\n".join(
        f"{lowest}-{highest}: {description}" for lowest, highest, _, description in SENSITIVITY_BANDS
    )
    return (
        "Analyze the following text for sensitivity level. "
        f"Rate it on a scale of 0-{MAX_SENSITIVITY_LEVEL} where:\n"
        f"{bands}\n\n"
        "Provide the rating and a brief explanation.\n\n"
        f'Text to analyze: "{text}"'
    )


def parse_sensitivity_level(response: str) -> int:
    match = _INTEGER.search(response or "")
    if match is None:
        return 0
    digits = match.group(0).lstrip("0") or "0"
    # Anything longer than three digits is above the scale.
    if len(digits) > len(str(MAX_SENSITIVITY_LEVEL)):
        return MAX_SENSITIVITY_LEVEL
    return min(int(digits), MAX_SENSITIVITY_LEVEL)


class SensitivityClassifier:
    def __init__(self, prompter: Prompter):
        self._prompter = prompter

    async def analyze(self, text: str) -> SensitivityAnalysis:
        require_text(text)
        response = await self._prompter.send(build_sensitivity_prompt(text))
        level = parse_sensitivity_level(response)
        logger.debug(f"Sensitivity level {level} ({band_for_level(level)})")
        return SensitivityAnalysis(text=text, sensitivity_level=level, explanation=response)

"""
Vision Client - Photo Condition Scoring

Sends a sample of a lead's photos to the OpenAI Responses API with a strict
JSON schema and turns the answer into a PhotoAnalysisResult. Any failure
surfaces as VisionAPIError so the caller can fall back to the heuristic.
"""

from __future__ import annotations

import base64
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Final, Optional, Sequence

import requests

from core.photos.analysis import (
    OBSERVED_KITCHEN,
    OBSERVED_OVERALL,
    OBSERVED_SYSTEM_RISK,
    OBSERVED_WATER,
    REHAB_TIERS,
    UPDATE_LEVELS,
    VISION_FLAG_KEYS,
    MAX_OBSERVATIONS,
    parse_vision_payload,
)
from core.photos.storage import PhotoRecord
from core.valuation.models import PhotoAnalysisResult

logger = logging.getLogger(__name__)


RESPONSES_URL: Final = "https://api.openai.com/v1/responses"
DEFAULT_MODEL: Final = "gpt-4.1-mini"
MAX_OUTPUT_TOKENS: Final = 500

SYSTEM_PROMPT: Final = (
    "You are a residential real-estate condition analyst. Score visible condition "
    "from photos only. Return strict JSON only."
)

FIELDS_PROMPT: Final = (
    'Return JSON fields: conditionScore (0-100), confidence (0-1), updateLevel '
    '("Light cosmetics"|"Moderate refresh"|"Full renovation"), rehabTier '
    '("Tier 1"|"Tier 2"|"Tier 3"), observedKitchen ("updated"|"average"|"dated"|"unknown"), '
    'observedOverall ("excellent"|"good"|"fair"|"poor"|"unknown"), observedWaterIssues '
    '("yes"|"no"|"unknown"), observedSystemRisk ("none"|"minor"|"major"|"unknown"), '
    "observations (string[] up to 6), and flags object with booleans: limited_photos, "
    "poor_lighting, mostly_exterior, severe_damage_visible."
)


class VisionAPIError(RuntimeError):
    """Raised when the vision model cannot produce a usable analysis."""


def _enum(values) -> dict:
    return {"type": "string", "enum": sorted(values)}


def build_response_schema() -> dict:
    """Strict JSON schema the model must answer with."""
    return {
        "type": "object",
        "additionalProperties": False,
        "properties": {
            "conditionScore": {"type": "number"},
            "confidence": {"type": "number"},
            "updateLevel": {"type": "string", "enum": list(UPDATE_LEVELS)},
            "rehabTier": {"type": "string", "enum": list(REHAB_TIERS)},
            "observations": {
                "type": "array",
                "items": {"type": "string"},
                "maxItems": MAX_OBSERVATIONS,
            },
            "observedKitchen": _enum(OBSERVED_KITCHEN),
            "observedOverall": _enum(OBSERVED_OVERALL),
            "observedWaterIssues": _enum(OBSERVED_WATER),
            "observedSystemRisk": _enum(OBSERVED_SYSTEM_RISK),
            "flags": {
                "type": "object",
                "additionalProperties": False,
                "properties": {key: {"type": "boolean"} for key in VISION_FLAG_KEYS},
                "required": list(VISION_FLAG_KEYS),
            },
        },
        "required": [
            "conditionScore",
            "confidence",
            "updateLevel",
            "rehabTier",
            "observations",
            "observedKitchen",
            "observedOverall",
            "observedWaterIssues",
            "observedSystemRisk",
            "flags",
        ],
    }


def photo_data_url(record: PhotoRecord) -> Optional[str]:
    """Inline a stored photo as a base64 data URL, or None if unreadable."""
    path = Path(record.storage_path)
    if not path.is_file():
        return None
    content = path.read_bytes()
    if not content:
        return None
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{record.content_type or 'image/jpeg'};base64,{encoded}"


def extract_output_text(data: Any) -> Optional[str]:
    """Pull the model's text answer out of a Responses API body."""
    if not isinstance(data, dict):
        return None
    if isinstance(data.get("output_text"), str):
        return data["output_text"]
    output = data.get("output")
    if not isinstance(output, list):
        return None
    for item in output:
        if not isinstance(item, dict) or not isinstance(item.get("content"), list):
            continue
        for part in item["content"]:
            if not isinstance(part, dict):
                continue
            if part.get("type") == "output_text" and isinstance(part.get("text"), str):
                return part["text"]
    return None


class VisionClient:
    """
    Client for photo condition scoring via the OpenAI Responses API.

    Usage:
        client = VisionClient(api_key="sk-...")
        result = client.analyze(photo_records)
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        timeout: float = 45,
        max_photos: int = 10,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.timeout = timeout
        self.max_photos = max_photos
        self.session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def build_request(self, image_urls: Sequence[str]) -> dict:
        content: list[dict] = [
            {"type": "input_text", "text": SYSTEM_PROMPT},
            {"type": "input_text", "text": FIELDS_PROMPT},
        ]
        content.extend({"type": "input_image", "image_url": url} for url in image_urls)

        return {
            "model": self.model,
            "input": [{"role": "user", "content": content}],
            "max_output_tokens": MAX_OUTPUT_TOKENS,
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "photo_condition_analysis",
                    "strict": True,
                    "schema": build_response_schema(),
                }
            },
        }

    def analyze(self, photos: Sequence[PhotoRecord]) -> PhotoAnalysisResult:
        """
        Score a lead's photos.

        Args:
            photos: Photo records, newest first; at most max_photos are sent

        Returns:
            PhotoAnalysisResult with flags["model"] set to the model name

        Raises:
            VisionAPIError: Not configured, no readable photos, HTTP failure
                or an unparseable answer
        """
        if not self.is_configured:
            raise VisionAPIError("No vision API key configured")

        image_urls = [url for url in (photo_data_url(p) for p in photos[: self.max_photos]) if url]
        if not image_urls:
            raise VisionAPIError("No readable photos to analyse")

        logger.info("Requesting vision analysis of %d photo(s) with %s", len(image_urls), self.model)

        try:
            response = self.session.post(
                RESPONSES_URL,
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {self.api_key}",
                },
                json=self.build_request(image_urls),
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as e:
            raise VisionAPIError(f"Vision API request failed: {e}") from e
        except ValueError as e:
            raise VisionAPIError(f"Vision API returned invalid JSON: {e}") from e

        raw = extract_output_text(body)
        if not raw:
            raise VisionAPIError("Vision API returned no output text")

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise VisionAPIError(f"Vision answer was not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise VisionAPIError("Vision answer was not a JSON object")

        result = parse_vision_payload(payload, self.model)
        observations = (f"Vision model reviewed {len(image_urls)} photo(s).",) + result.observations
        return replace(result, observations=observations)

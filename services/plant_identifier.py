import base64
import json
import re
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from core.config import Settings
from core.exceptions import IntegrationError, ValidationError
from core.logger import integration_logger
from services.validation import FieldError

ALLOWED_MIME_TYPES = ("image/jpeg", "image/png", "image/webp")
MAX_IMAGE_BYTES = 10 * 1024 * 1024

HEALTH_STATUSES = ("Healthy", "Needs attention", "Critical")

IDENTIFY_PROMPT = """You are a botanist. Identify the plant in the photo.
Respond with a JSON object with exactly these keys:
"species" (common name), "scientific_name", "confidence" (number 0-1),
"alternatives" (up to 3 objects with "species", "scientific_name", "confidence"),
"reasoning" (one or two sentences),
"care" (object with "light", "water", "humidity", "temperature", "toxicity").
If the photo does not show a plant, set "species" to null and explain in "reasoning"."""

HEALTH_PROMPT = """You are a plant doctor. Look at the plant in the photo and assess its health.
Respond in this exact format:
HEALTH STATUS: Healthy | Needs attention | Critical
ISSUES:
- one issue per line, or "None"
RECOMMENDATIONS:
- one recommendation per line"""

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def sniff_image_type(data: bytes) -> Optional[str]:
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return None


def check_image(data: bytes, mime_type: Optional[str]) -> str:
    """Return the image's real mime type or raise ValidationError."""
    if not data:
        raise ValidationError(errors=[FieldError("image", "Image is required")])
    if len(data) > MAX_IMAGE_BYTES:
        raise ValidationError(errors=[FieldError("image", "Image must be 10MB or smaller")])

    detected = sniff_image_type(data)
    if detected is None or (mime_type and mime_type not in ALLOWED_MIME_TYPES):
        raise ValidationError(errors=[FieldError("image", "Image must be JPEG, PNG or WebP")])
    return detected


def parse_json_response(content: Optional[str]) -> Dict[str, Any]:
    """Parse model output that should be JSON, tolerating ```json fences."""
    text = _FENCE.sub("", (content or "").strip())
    try:
        data = json.loads(text)
    except ValueError:
        # some models wrap the object in prose
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise IntegrationError("Could not parse identification result", status_code=422)
        try:
            data = json.loads(text[start:end + 1])
        except ValueError:
            raise IntegrationError("Could not parse identification result", status_code=422)

    if not isinstance(data, dict):
        raise IntegrationError("Could not parse identification result", status_code=422)
    return data


def _normalize_status(value: str) -> str:
    value = (value or "").strip().lower()
    for status in HEALTH_STATUSES:
        if value.startswith(status.lower()):
            return status
    if "critical" in value:
        return "Critical"
    if "attention" in value or "warning" in value:
        return "Needs attention"
    return "Needs attention" if value else "Healthy"


def _as_lines(value) -> List[str]:
    if isinstance(value, list):
        return [str(v).strip() for v in value if str(v).strip()]
    if not value:
        return []
    return [line.strip() for line in str(value).splitlines() if line.strip()]


def parse_health_response(content: Optional[str]) -> Dict[str, Any]:
    """
    Parse a health assessment.

    Accepts the sectioned text format from HEALTH_PROMPT and also a JSON
    object with health_status / issues / recommendations keys.
    """
    text = (content or "").strip()
    stripped = _FENCE.sub("", text)
    if stripped.startswith("{"):
        try:
            data = json.loads(stripped)
        except ValueError:
            data = None
        if isinstance(data, dict):
            return {
                "health_status": _normalize_status(data.get("health_status") or data.get("status")),
                "issues": _as_lines(data.get("issues")),
                "recommendations": _as_lines(data.get("recommendations")),
            }

    sections = {"status": [], "issues": [], "recommendations": []}
    current = None
    for raw in text.splitlines():
        line = raw.strip()
        upper = line.upper()
        if upper.startswith("HEALTH STATUS"):
            current = "status"
            line = line.split(":", 1)[1] if ":" in line else ""
        elif upper.startswith("ISSUES"):
            current = "issues"
            line = line.split(":", 1)[1] if ":" in line else ""
        elif upper.startswith("RECOMMENDATIONS"):
            current = "recommendations"
            line = line.split(":", 1)[1] if ":" in line else ""

        line = line.strip().lstrip("-*•").strip()
        if current and line:
            sections[current].append(line)

    if not any(sections.values()):
        raise IntegrationError("Could not parse health assessment", status_code=422)

    issues = [i for i in sections["issues"] if i.lower() != "none"]
    return {
        "health_status": _normalize_status(sections["status"][0] if sections["status"] else ""),
        "issues": issues,
        "recommendations": sections["recommendations"],
    }


class PlantIdentifierService:
    """
    Vision calls against an OpenAI-compatible chat completions API.

    The client is synchronous; routes call these methods through
    ``run_in_threadpool``.
    """

    def __init__(self, client: OpenAI, model: str):
        self.client = client
        self.model = model

    def _ask(self, prompt: str, image: bytes, mime_type: str, json_mode: bool) -> str:
        image_url = f"data:{mime_type};base64,{base64.b64encode(image).decode()}"
        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        integration_logger.log_request("openai", "chat.completions", {
            "model": self.model,
            "bytes": len(image),
            "json": json_mode
        })

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    }
                ],
                max_tokens=1000,
                **kwargs,
            )
        except OpenAIError as e:
            integration_logger.log_error("openai", e)
            raise IntegrationError("AI service is unavailable")

        if not response.choices:
            raise IntegrationError("Empty response from AI service")
        return response.choices[0].message.content or ""

    def identify(self, image: bytes, mime_type: Optional[str]) -> Dict[str, Any]:
        mime_type = check_image(image, mime_type)
        data = parse_json_response(self._ask(IDENTIFY_PROMPT, image, mime_type, json_mode=True))

        try:
            confidence = float(data.get("confidence") or 0)
        except (TypeError, ValueError):
            confidence = 0.0

        alternatives = []
        for alt in (data.get("alternatives") or [])[:3]:
            if isinstance(alt, dict) and alt.get("species"):
                alternatives.append({
                    "species": alt.get("species"),
                    "scientific_name": alt.get("scientific_name"),
                    "confidence": alt.get("confidence"),
                })

        care = data.get("care") if isinstance(data.get("care"), dict) else {}
        return {
            "species": data.get("species"),
            "scientific_name": data.get("scientific_name"),
            "confidence": max(0.0, min(1.0, confidence)),
            "alternatives": alternatives,
            "reasoning": data.get("reasoning"),
            "care": care,
        }

    def assess_health(self, image: bytes, mime_type: Optional[str]) -> Dict[str, Any]:
        mime_type = check_image(image, mime_type)
        content = self._ask(HEALTH_PROMPT, image, mime_type, json_mode=False)

        result = parse_health_response(content)
        result["raw_response"] = content
        return result


def build_identifier(config: Settings) -> Optional[PlantIdentifierService]:
    """None when no API key is configured; the AI routes then answer 503."""
    if not config.OPENAI_API_KEY:
        return None

    client = OpenAI(
        api_key=config.OPENAI_API_KEY,
        base_url=config.OPENAI_BASE_URL or None,
        timeout=max(config.HTTP_TIMEOUT_SECONDS, 60),
    )
    return PlantIdentifierService(client, config.OPENAI_MODEL)

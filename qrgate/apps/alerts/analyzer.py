from typing import Any, Optional

import requests
from django.conf import settings

EMPTY_REPLY_MESSAGE = "Suspicious access attempt detected"


def build_alert_context(
    grant_id: str,
    document_id: str,
    denial_reasons: list[str],
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
) -> dict[str, Any]:
    """The denial context handed to the analyzer."""
    context: dict[str, Any] = {
        "grantId": grant_id,
        "documentId": document_id,
        "denialReasons": list(denial_reasons),
    }
    if latitude is not None and longitude is not None:
        context["latitude"] = latitude
        context["longitude"] = longitude
    return context


def build_fallback_message(denial_reasons: list[str]) -> str:
    """Deterministic alert text used when the analyzer cannot answer."""
    return (
        "Security Alert: Unauthorized access attempt blocked. "
        f"Reasons: {', '.join(denial_reasons)}"
    )


class AnomalyAnalyzerClient:
    """
    Client for an Ollama-compatible text generation service (POST /api/generate)
    that turns a denial context into a short security alert.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.base_url = (base_url or settings.ANOMALY_ANALYZER_URL).rstrip("/")
        self.model = model or settings.ANOMALY_ANALYZER_MODEL
        self.timeout = timeout if timeout is not None else settings.ANOMALY_ANALYZER_TIMEOUT
        self.session = requests.Session()

    def _handle_error(self, response: requests.Response, prefix: str) -> None:
        """Checks for HTTP errors and raises a descriptive RuntimeError."""
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise RuntimeError(
                f"{prefix} failed ({e.response.status_code}): {e.response.text}"
            ) from e

    def build_prompt(self, context: dict[str, Any]) -> str:
        if "latitude" in context:
            location = f"{context['latitude']}, {context['longitude']}"
        else:
            location = "Not provided"
        return (
            "You are a security alert system. Analyze this suspicious document access "
            "attempt and generate a concise security alert message (max 200 characters).\n\n"
            "Context:\n"
            f"- Document ID: {context['documentId']}\n"
            f"- QR Code ID: {context['grantId']}\n"
            f"- Denial Reasons: {', '.join(context['denialReasons'])}\n"
            f"- Location: {location}\n\n"
            "Generate a brief, professional security alert message:"
        )

    def generate_alert(self, context: dict[str, Any]) -> str:
        """
        POST /api/generate

        Returns the generated text. Raises requests.RequestException on
        transport errors/timeouts and RuntimeError on an unusable reply.
        """
        r = self.session.post(
            f"{self.base_url}/api/generate",
            json={"model": self.model, "prompt": self.build_prompt(context), "stream": False},
            timeout=self.timeout,
        )
        self._handle_error(r, "Anomaly analysis")

        try:
            data = r.json()
        except ValueError as e:
            raise RuntimeError("Anomaly analysis returned invalid JSON") from e

        text = (data.get("response") or "").strip() if isinstance(data, dict) else ""
        return text or EMPTY_REPLY_MESSAGE

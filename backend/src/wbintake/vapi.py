"""Client and webhook parsing for the VAPI voice intake vendor.

The vendor is an opaque source of finished call records; the intake
pipeline only reads the transcript, summary and recording URL and keeps
the rest verbatim in ``vapi_call_data``.
"""

from typing import Any

import httpx
from pydantic import ValidationError

from .config import Settings, get_settings
from .intake.exceptions import VapiError
from .intake.models import VapiCall
from .logging import get_context_logger

logger = get_context_logger(__name__)

# Event types that carry a finished call
REPORT_EVENTS = {"end-of-call-report", "call-ended"}


class VapiClient:
    """Async client for the VAPI REST API.

    Args:
        api_key: Private API key
        base_url: API root
        assistant_id: Assistant that answers whistleblower calls
        timeout: Request timeout in seconds
        transport: Optional httpx transport, used by tests
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.vapi.ai",
        assistant_id: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.assistant_id = assistant_id
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "VapiClient":
        settings = settings or get_settings()
        return cls(
            api_key=settings.vapi_api_key,
            base_url=settings.vapi_base_url,
            assistant_id=settings.vapi_assistant_id,
            timeout=settings.vapi_timeout_seconds,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.request(method, path, **kwargs)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise VapiError(
                    f"VAPI returned {e.response.status_code} for {path}",
                    status_code=e.response.status_code,
                ) from e
            except httpx.HTTPError as e:
                raise VapiError(f"VAPI request to {path} failed: {e}") from e
        return response.json()

    async def list_calls(self, limit: int = 100) -> list[VapiCall]:
        """Fetch recent calls. Records that fail to parse are skipped."""
        payload = await self._request("GET", "/call", params={"limit": limit})
        calls = []
        for item in payload or []:
            try:
                calls.append(VapiCall.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed VAPI call record: {e}")
        return calls

    async def get_call(self, call_id: str) -> VapiCall:
        payload = await self._request("GET", f"/call/{call_id}")
        return VapiCall.model_validate(payload)

    async def get_assistant(self) -> dict[str, Any]:
        return await self._request("GET", f"/assistant/{self.assistant_id}")

    async def test_connection(self) -> bool:
        """Check credentials by fetching the configured assistant."""
        try:
            assistant = await self.get_assistant()
        except VapiError as e:
            logger.warning(f"VAPI connection failed: {e.details}")
            return False
        return bool(assistant)


def parse_webhook(payload: dict[str, Any]) -> VapiCall | None:
    """Extract a finished call from a webhook payload.

    Accepts the nested ``{"message": {"type": ..., "call": {...}}}`` shape
    and the flat ``{"type": "call-ended", "transcript": ..., "call": {...}}``
    shape. Returns None for events that need no processing.

    Raises:
        VapiError: A report event whose call record is unusable
    """
    message = payload.get("message") if isinstance(payload.get("message"), dict) else payload
    event_type = message.get("type")
    if event_type not in REPORT_EVENTS:
        return None

    call = message.get("call") or {}
    if not isinstance(call, dict):
        raise VapiError("Webhook call record is not an object")
    call = dict(call)
    # Flat payloads carry the transcript and summary beside the call
    for key in ("transcript", "summary", "analysis", "recordingUrl", "endedAt"):
        if key not in call and message.get(key) is not None:
            call[key] = message[key]
    artifact = message.get("artifact")
    if artifact and not isinstance(artifact, dict):
        raise VapiError("Webhook artifact is not an object")
    if artifact:
        call.setdefault("transcript", artifact.get("transcript"))
        call.setdefault("recordingUrl", artifact.get("recordingUrl"))

    call.setdefault("status", "ended")
    if not call.get("id"):
        raise VapiError("Webhook call record has no id")

    try:
        return VapiCall.model_validate(call)
    except ValidationError as e:
        raise VapiError(f"Invalid webhook call record: {e}") from e

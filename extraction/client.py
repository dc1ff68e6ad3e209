# extraction/client.py
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import requests
from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from catalog.config import DEFAULT_BASE_URL, DEFAULT_MODEL
from catalog.logger import get_logger
from .json_payload import extract_json_object

logger = get_logger(__name__)

API_VERSION = "2023-06-01"

EXTRACTION_PROMPT = """\
Analyze the following auction item description and extract any expiration dates/notices and special notes/instructions.

Description: {description}

Respond with ONLY a JSON object in exactly this format (no markdown, no extra text):
{{
  "expiration_notice": "extracted expiration info or empty string",
  "notes": "extracted special notes/instructions or empty string",
  "description": "the description with expiration and notes removed"
}}

Guidelines:
- expiration_notice: any text about expiration dates, validity periods, or time limits
- notes: special instructions such as "call ahead", "out of town charges apply", "schedule with...", contact info, restrictions
- description: the original description minus the extracted content, keeping its line breaks and "- " bullets
- Use empty strings "" when there is nothing to extract
"""


class ExtractionError(Exception):
    """Generic text extraction failure."""


class MissingApiKeyError(ExtractionError):
    """No API key configured."""


class TransportError(ExtractionError):
    """The request never produced an HTTP response."""


class ApiError(ExtractionError):
    def __init__(self, status: int, body: Any):
        super().__init__(f"API returned status {status}: {body}")
        self.status = status
        self.body = body


class MalformedResponseError(ExtractionError):
    """The payload is not JSON, or carries no JSON object."""


class UnexpectedShapeError(ExtractionError):
    """The payload is JSON but not the expected structure."""


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, TransportError):
        return True
    if isinstance(exc, ApiError):
        return exc.status == 429 or exc.status >= 500
    return False


@dataclass
class Extraction:
    expiration_notice: str = ""
    notes: str = ""
    description: str = ""

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "Extraction":
        keys = ("expiration_notice", "notes", "description")
        missing = [k for k in keys if k not in data]
        if missing:
            raise UnexpectedShapeError(f"Extraction payload missing keys: {missing}")
        values = {}
        for k in keys:
            v = data[k]
            if v is None:
                v = ""
            if not isinstance(v, str):
                raise UnexpectedShapeError(f"Extraction field {k!r} is not a string: {v!r}")
            values[k] = v.strip()
        return cls(**values)

    def as_dict(self) -> Dict[str, str]:
        return asdict(self)


class AnthropicClient:
    """Thin client for the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 1024,
        base_url: str = DEFAULT_BASE_URL,
        timeout: int = 60,
        max_attempts: int = 3,
        session: Optional[requests.Session] = None,
        wait=None,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.session = session or requests.Session()
        self.wait = wait or wait_exponential_jitter(initial=1, max=30)

    @classmethod
    def from_settings(cls, settings, **kwargs) -> "AnthropicClient":
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            max_tokens=settings.max_tokens,
            base_url=settings.base_url,
            timeout=settings.timeout,
            max_attempts=settings.max_attempts,
            **kwargs,
        )

    def _post(self, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            resp = self.session.post(
                f"{self.base_url}/messages",
                json=body,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": API_VERSION,
                    "content-type": "application/json",
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning("Extraction request failed: %s", e)
            raise TransportError(str(e)) from e

        if resp.status_code != 200:
            try:
                err_body: Any = resp.json()
            except ValueError:
                err_body = resp.text
            logger.warning("Extraction API returned status %s.", resp.status_code)
            raise ApiError(resp.status_code, err_body)

        try:
            payload = resp.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response body is not JSON: {e}") from e
        if not isinstance(payload, dict):
            raise UnexpectedShapeError("Response body is not a JSON object")
        return payload

    def send_message(self, prompt: str) -> str:
        """Send one user message and return the first text block of the reply."""
        if not self.api_key:
            raise MissingApiKeyError("ANTHROPIC_API_KEY is not set")

        body = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        retrying = Retrying(
            wait=self.wait,
            stop=stop_after_attempt(self.max_attempts),
            retry=retry_if_exception(_is_retryable),
            reraise=True,
        )
        payload = retrying(self._post, body)

        content = payload.get("content")
        if isinstance(content, list):
            for block in content:
                if isinstance(block, dict) and isinstance(block.get("text"), str):
                    return block["text"]
        raise UnexpectedShapeError("Response has no text content block")

    def extract(self, description: str) -> Extraction:
        text = self.send_message(EXTRACTION_PROMPT.format(description=description))
        data = extract_json_object(text)
        if data is None:
            raise MalformedResponseError(f"No JSON object in reply: {text[:200]!r}")
        return Extraction.from_payload(data)

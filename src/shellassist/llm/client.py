"""Thin chat-completion client that requests a script suggestion."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from urllib import request
from urllib.error import HTTPError, URLError

from shellassist.errors import TransportError

LOGGER = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.openai.com/v1/chat/completions"
DEFAULT_MODEL = "gpt-3.5-turbo"


@dataclass(slots=True)
class Deadline:
    """Absolute point in monotonic time after which a request is abandoned."""

    expires_at: float

    @classmethod
    def after(cls, seconds: float) -> Deadline:
        return cls(expires_at=time.monotonic() + seconds)

    def remaining(self) -> float:
        return self.expires_at - time.monotonic()

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0


class CompletionClient:
    """Small HTTP client for two-message chat completions."""

    def __init__(
        self,
        *,
        api_key: str | None,
        system_prompt: str,
        model: str = DEFAULT_MODEL,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.model = model
        self.api_url = api_url
        self.timeout = timeout

    def complete(self, prompt: str, *, deadline: Deadline | None = None) -> str:
        """Return the content of the first choice for ``prompt``."""
        timeout = self._effective_timeout(deadline)
        payload = self._build_payload(prompt)
        body = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        LOGGER.debug(
            "completion_request_prepared",
            extra={
                "api_url": self.api_url,
                "model": self.model,
                "payload_bytes": len(body),
                "timeout_seconds": timeout,
            },
        )

        req = request.Request(self.api_url, data=body, headers=headers, method="POST")
        try:
            with request.urlopen(req, timeout=timeout) as resp:  # noqa: S310
                raw_response = json.loads(resp.read().decode("utf-8"))
        except HTTPError as exc:
            body_excerpt = self._read_error_body_excerpt(exc)
            LOGGER.error(
                "completion_http_error",
                extra={
                    "api_url": self.api_url,
                    "model": self.model,
                    "http_status": exc.code,
                    "reason": exc.reason,
                    "response_excerpt": body_excerpt,
                },
            )
            details = f"openai: request failed with HTTP {exc.code}: {exc.reason}"
            if body_excerpt:
                details = f"{details}. Response body: {body_excerpt}"
            raise TransportError(details) from exc
        except URLError as exc:
            LOGGER.error(
                "completion_transport_error",
                extra={"api_url": self.api_url, "model": self.model, "reason": str(exc.reason)},
            )
            raise TransportError(f"openai: transport error: {exc.reason}") from exc
        except TimeoutError as exc:
            LOGGER.error(
                "completion_timeout",
                extra={"api_url": self.api_url, "model": self.model, "timeout_seconds": timeout},
            )
            raise TransportError(f"openai: request timed out after {timeout:.1f}s") from exc
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            LOGGER.error(
                "completion_response_decode_error",
                extra={"api_url": self.api_url, "model": self.model, "error": str(exc)},
            )
            raise TransportError(f"openai: undecodable response: {exc}") from exc

        return self._extract_content(raw_response)

    def _effective_timeout(self, deadline: Deadline | None) -> float:
        if deadline is None:
            return self.timeout
        remaining = deadline.remaining()
        if remaining <= 0:
            raise TransportError("openai: deadline expired before the request was sent")
        return min(self.timeout, remaining)

    def _build_payload(self, prompt: str) -> dict[str, object]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
        }

    @staticmethod
    def _extract_content(payload: object) -> str:
        if not isinstance(payload, dict):
            raise TransportError("openai: expected a top-level object")

        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise TransportError("no choices returned")

        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise TransportError("openai: first choice carries no message content")
        return content

    @staticmethod
    def _read_error_body_excerpt(exc: HTTPError, *, max_chars: int = 500) -> str | None:
        if exc.fp is None:
            return None
        try:
            raw = exc.read()
        except OSError:
            return None

        if not raw:
            return None

        excerpt = raw.decode("utf-8", errors="replace").replace("\n", " ").strip()
        if len(excerpt) > max_chars:
            return f"{excerpt[:max_chars]}..."
        return excerpt

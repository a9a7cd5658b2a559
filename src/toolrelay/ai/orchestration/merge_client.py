"""Client for the remote merge service that turns an edit sketch into a full document.

The service speaks the OpenAI-compatible chat completions protocol: the
original document, the instructions and the sketch go out in a single user
message, and the merged document comes back as the first choice's content.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Mapping, Protocol, Sequence

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ...services.settings import Settings, redact_secret
from ..tools.errors import MergeTimeoutError, NetworkError, ParseError

LOGGER = logging.getLogger(__name__)

_MAX_BODY_PREVIEW = 500


@dataclass(slots=True, frozen=True)
class MergeRequest:
    """Inputs for one merge: intent, current document and the proposed edit sketch."""

    instructions: str
    original_content: str
    code_edit: str

    @classmethod
    def from_lines(cls, instructions: str, original_lines: Sequence[str], code_edit: str) -> "MergeRequest":
        return cls(
            instructions=instructions,
            original_content="\n".join(original_lines),
            code_edit=code_edit,
        )

    def build_prompt(self) -> str:
        return (
            f"<instructions>{self.instructions}</instructions>\n"
            f"<code>{self.original_content}</code>\n"
            f"<update>{self.code_edit}</update>"
        )


class MergeService(Protocol):
    """Produces the merged document content for a :class:`MergeRequest`."""

    def merge(self, request: MergeRequest) -> Awaitable[str]:
        ...


def split_merged_content(content: str) -> List[str]:
    """Split merged content into document lines; one trailing newline ends the last line."""

    lines = content.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


class MergeServiceClient:
    """Async merge service client with retry semantics.

    Connection failures are retried with exponential backoff; HTTP errors,
    timeouts and malformed responses are reported immediately.
    """

    def __init__(self, settings: Settings, *, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client or self._build_client(settings)

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def url(self) -> str:
        return f"{self._settings.merge_endpoint.rstrip('/')}/chat/completions"

    async def merge(self, request: MergeRequest) -> str:
        """Return the merged document for ``request``.

        Raises:
            NetworkError: The service is unreachable or answered with HTTP >= 400.
            MergeTimeoutError: The request exceeded ``request_timeout``.
            ParseError: The body is empty, not JSON, an error object, or has no content.
        """
        payload = self._build_payload(request)
        LOGGER.debug("Merge request to %s (model=%s)", self.url, self._settings.merge_model)
        if self._settings.debug_logging:
            self._log_prompt_payload(payload)

        try:
            async for attempt in self._retrying():
                with attempt:
                    response = await self._client.post(
                        self.url,
                        json=payload,
                        headers=self._build_headers(),
                    )
        except httpx.TimeoutException as exc:
            raise MergeTimeoutError(
                message="timeout",
                timeout_seconds=self._settings.request_timeout,
                details={"endpoint": self.url},
            ) from exc
        except httpx.HTTPError as exc:
            raise NetworkError(
                message=f"Merge service request failed: {exc}",
                details={"endpoint": self.url},
            ) from exc

        return self._parse_response(response)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _build_client(self, settings: Settings) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=settings.request_timeout)

    def _build_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        headers.update(self._settings.default_headers or {})
        if self._settings.merge_api_key:
            headers["Authorization"] = f"Bearer {self._settings.merge_api_key}"
        return headers

    def _build_payload(self, request: MergeRequest) -> Dict[str, Any]:
        return {
            "model": self._settings.merge_model,
            "messages": [{"role": "user", "content": request.build_prompt()}],
        }

    def _log_prompt_payload(self, payload: Dict[str, Any]) -> None:
        headers = dict(self._build_headers())
        if "Authorization" in headers:
            headers["Authorization"] = f"Bearer {redact_secret(self._settings.merge_api_key or '')}"
        LOGGER.debug("Merge payload headers=%s body=%s", headers, json.dumps(payload, ensure_ascii=False))

    def _retrying(self) -> AsyncRetrying:
        return AsyncRetrying(
            reraise=True,
            stop=stop_after_attempt(max(1, self._settings.max_retries)),
            wait=wait_exponential(
                multiplier=self._settings.retry_min_seconds,
                max=self._settings.retry_max_seconds,
            ),
            retry=retry_if_exception_type((httpx.ConnectError, httpx.RemoteProtocolError)),
        )

    def _parse_response(self, response: httpx.Response) -> str:
        body = response.text or ""
        if response.status_code >= 400:
            raise NetworkError(
                message=f"HTTP request failed: Status: {response.status_code}",
                status_code=response.status_code,
                details={
                    "endpoint": self.url,
                    "model": self._settings.merge_model,
                    "response": body[:_MAX_BODY_PREVIEW],
                },
            )
        if not body.strip():
            raise ParseError(message="Empty response from server")
        try:
            data = json.loads(body)
        except json.JSONDecodeError as exc:
            raise ParseError(
                message="Failed to parse JSON response",
                details={"response": body[:_MAX_BODY_PREVIEW]},
            ) from exc
        if not isinstance(data, Mapping):
            raise ParseError(message="Invalid response format")

        error = data.get("error")
        if error:
            if isinstance(error, Mapping) and error.get("message"):
                message = str(error["message"])
            else:
                message = str(error)
            raise ParseError(message=message, details={"error": error})

        choices = data.get("choices")
        first = choices[0] if isinstance(choices, list) and choices else None
        message_payload = first.get("message") if isinstance(first, Mapping) else None
        if not isinstance(message_payload, Mapping):
            raise ParseError(message="Invalid response format")

        content = message_payload.get("content")
        if not isinstance(content, str) or not content:
            raise ParseError(message="Merge service returned empty content")
        return content


__all__ = [
    "MergeRequest",
    "MergeService",
    "MergeServiceClient",
    "split_merged_content",
]

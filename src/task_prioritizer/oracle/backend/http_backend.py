"""HTTP backend for Anthropic-compatible Messages APIs."""

from __future__ import annotations

import json
import logging

import httpx

from task_prioritizer.oracle.backend.base import (
    TIMEOUT_EXIT_CODE,
    BackendRunError,
    BackendRunRequest,
    BackendRunResult,
)

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"
MESSAGES_PATH = "/v1/messages"


class MessagesApiBackend:
    """Send one user message per request and return the concatenated text blocks."""

    name = "http"

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        max_retries: int = 2,
        client: httpx.Client | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(
            base_url=base_url,
            headers=_headers(api_key),
            transport=httpx.HTTPTransport(retries=max_retries),
        )

    def run(self, request: BackendRunRequest) -> BackendRunResult:
        payload = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "system": request.system,
            "messages": [{"role": "user", "content": request.prompt}],
        }
        try:
            response = self._client.post(
                MESSAGES_PATH,
                json=payload,
                timeout=httpx.Timeout(request.timeout_seconds, connect=10.0),
            )
        except httpx.TimeoutException:
            logger.warning("Timeout calling messages API for %s", request.purpose)
            return BackendRunResult(
                exit_code=TIMEOUT_EXIT_CODE,
                timed_out=True,
                stdout="",
                stderr="request timed out",
            )
        except httpx.HTTPError as error:
            raise BackendRunError(
                f"Messages API request failed: {error}",
                transient=True,
            ) from error

        if not response.is_success:
            return BackendRunResult(
                exit_code=response.status_code,
                timed_out=False,
                stdout="",
                stderr=f"HTTP {response.status_code}: {response.text}",
            )

        try:
            body = response.json()
        except json.JSONDecodeError as error:
            raise BackendRunError(
                "Messages API returned a non-JSON body.",
                transient=True,
            ) from error
        return BackendRunResult(
            exit_code=0,
            timed_out=False,
            stdout=extract_text_content(body),
            stderr="",
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> MessagesApiBackend:
        return self

    def __exit__(self, *_: object) -> None:
        self.close()


def extract_text_content(body: object) -> str:
    """Join all ``text`` content blocks of a Messages API response."""

    if not isinstance(body, dict):
        return ""
    content = body.get("content")
    if not isinstance(content, list):
        return ""
    texts = [
        block.get("text", "")
        for block in content
        if isinstance(block, dict) and block.get("type") == "text"
    ]
    return "\n".join(text for text in texts if isinstance(text, str))


def _headers(api_key: str) -> dict[str, str]:
    return {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }

"""Shared parsing and LLM utilities for agent responses."""

import re
import sys

import httpx
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

_FENCE_LINE_RE = re.compile(r"^[ \t]*```(?:json)?[ \t]*$\n?", re.IGNORECASE | re.MULTILINE)


def remove_fence_lines(text: str) -> str:
    """Drop lines that hold only a ``` / ```json marker, keeping everything else."""
    return _FENCE_LINE_RE.sub("", text).strip()


def balanced_object_spans(text: str):
    """Yield each top-level {...} span in text, left to right.

    Braces inside JSON string literals are ignored. An opening brace that
    never closes is skipped and the scan resumes at the next one.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        end = -1
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end == -1:
            start = text.find("{", start + 1)
            continue
        yield text[start:end + 1]
        start = text.find("{", end + 1)


def _is_transient(exc: BaseException) -> bool:
    """Return True if the exception is a transient HTTP/network error worth retrying."""
    if isinstance(exc, httpx.TimeoutException):
        return True
    if isinstance(exc, httpx.ConnectError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in (429, 500, 502, 503)
    return False


def invoke_with_retry(llm, messages, max_retries: int = 2):
    """Call llm.invoke(messages) with exponential backoff on transient errors.

    Retries on HTTP 429/500/502/503, connection errors, and timeouts.
    Non-transient errors (auth failures, bad requests) are raised immediately.
    """
    from scl.config import get_config

    config = get_config()
    retries = config.get("llm_max_retries", max_retries)

    @retry(
        stop=stop_after_attempt(retries + 1),  # +1 because first attempt counts
        wait=wait_exponential(multiplier=1, min=2, max=16),
        retry=retry_if_exception(_is_transient),
        reraise=True,
        before_sleep=lambda state: print(
            f"[SCL] Transient error: {state.outcome.exception()!r}. "
            f"Retrying in {state.next_action.sleep:.0f}s "
            f"(attempt {state.attempt_number}/{retries})...",
            file=sys.stderr,
        ),
    )
    def _invoke():
        return llm.invoke(messages)

    return _invoke()

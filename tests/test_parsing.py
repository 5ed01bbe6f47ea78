"""Tests for scl.utils.parsing: remove_fence_lines, balanced_object_spans, invoke_with_retry."""

from unittest.mock import patch, MagicMock

import httpx
import pytest

from scl.utils.parsing import (
    balanced_object_spans,
    invoke_with_retry,
    remove_fence_lines,
)


# --- remove_fence_lines ---

class TestRemoveFenceLines:
    def test_removes_marker_lines(self):
        text = 'a\n```json\n{"x": 1}\n```\nb'
        assert remove_fence_lines(text) == 'a\n{"x": 1}\nb'

    def test_case_insensitive_tag(self):
        assert remove_fence_lines("```Json\n{}\n```") == "{}"

    def test_inline_backticks_kept(self):
        text = '{"content": "run ```json``` here"}'
        assert remove_fence_lines(text) == text

    def test_other_language_fences_kept(self):
        text = "```python\nprint(1)\n```"
        assert "```python" in remove_fence_lines(text)


# --- balanced_object_spans ---

class TestBalancedObjectSpans:
    def test_single_object(self):
        assert list(balanced_object_spans('x {"a": {"b": 1}} y')) == ['{"a": {"b": 1}}']

    def test_multiple_objects_in_order(self):
        assert list(balanced_object_spans("{1} and {2}")) == ["{1}", "{2}"]

    def test_braces_inside_strings_ignored(self):
        text = '{"a": "}{", "b": "\\"}"}'
        assert list(balanced_object_spans(text)) == [text]

    def test_unclosed_object_yields_nothing(self):
        assert list(balanced_object_spans('{"a": 1')) == []

    def test_stray_open_brace_skipped(self):
        text = 'Blocks open with `{`. Then {"a": 1} follows.'
        assert list(balanced_object_spans(text)) == ['{"a": 1}']

    def test_no_braces(self):
        assert list(balanced_object_spans("plain text")) == []


# --- invoke_with_retry ---

class TestInvokeWithRetry:
    def _mock_llm(self, side_effect):
        llm = MagicMock()
        llm.invoke.side_effect = side_effect
        return llm

    @patch("scl.config._config", {"llm_max_retries": 3})
    def test_succeeds_on_first_try(self):
        response = MagicMock()
        response.content = "ok"
        llm = self._mock_llm([response])

        result = invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert result.content == "ok"
        assert llm.invoke.call_count == 1

    @patch("time.sleep")
    @patch("scl.config._config", {"llm_max_retries": 3})
    def test_retries_on_connect_error(self, _sleep):
        response = MagicMock()
        response.content = "ok"
        llm = self._mock_llm([
            httpx.ConnectError("connection refused"),
            response,
        ])

        result = invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert result.content == "ok"
        assert llm.invoke.call_count == 2

    @patch("time.sleep")
    @patch("scl.config._config", {"llm_max_retries": 3})
    def test_retries_on_503(self, _sleep):
        response_503 = httpx.Response(503, request=httpx.Request("POST", "https://api.example.com"))
        response = MagicMock()
        response.content = "ok"
        llm = self._mock_llm([
            httpx.HTTPStatusError("unavailable", request=response_503.request, response=response_503),
            response,
        ])

        result = invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert result.content == "ok"
        assert llm.invoke.call_count == 2

    @patch("time.sleep")
    @patch("scl.config._config", {"llm_max_retries": 2})
    def test_raises_after_max_retries(self, _sleep):
        llm = self._mock_llm([
            httpx.ReadTimeout("fail 1"),
            httpx.ReadTimeout("fail 2"),
            httpx.ReadTimeout("fail 3"),
        ])

        with pytest.raises(httpx.ReadTimeout):
            invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert llm.invoke.call_count == 3  # 1 initial + 2 retries

    @patch("scl.config._config", {"llm_max_retries": 3})
    def test_does_not_retry_on_auth_error(self):
        response_401 = httpx.Response(401, request=httpx.Request("POST", "https://api.example.com"))
        llm = self._mock_llm([
            httpx.HTTPStatusError("unauthorized", request=response_401.request, response=response_401),
        ])

        with pytest.raises(httpx.HTTPStatusError):
            invoke_with_retry(llm, [{"role": "user", "content": "hi"}])

        assert llm.invoke.call_count == 1

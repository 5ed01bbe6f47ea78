"""Completion Client — sends one role-tagged prompt to the configured chat model.

Each role (supervisor, coder) is routed to its own provider/model from
config.yaml. Transient transport errors are retried by invoke_with_retry;
whatever still fails surfaces as CompletionError so the loop can tell a
failed call apart from an empty reply.
"""

from typing import Protocol

from langchain_anthropic import ChatAnthropic
from langchain_google_genai import ChatGoogleGenerativeAI

from scl.config import get_config
from scl.errors import CompletionError
from scl.utils.parsing import invoke_with_retry

VALID_ROLES = {"supervisor", "coder"}


class CompletionClient(Protocol):
    def complete(self, role: str, system_preamble: str, prompt: str, max_tokens: int) -> str: ...


def _build_llm(provider: str, model: str, temperature: float, max_tokens: int):
    """Instantiate the LangChain chat model for a provider name."""
    if provider == "anthropic":
        return ChatAnthropic(model=model, temperature=temperature, max_tokens=max_tokens)
    if provider == "google":
        return ChatGoogleGenerativeAI(
            model=model, temperature=temperature, max_output_tokens=max_tokens
        )
    raise ValueError(f"Unknown provider '{provider}'. Must be one of: anthropic, google")


def _content_text(content) -> str:
    """Flatten a LangChain message content (str or list of blocks) to text."""
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class LangChainCompletionClient:
    """CompletionClient backed by langchain-anthropic / langchain-google-genai."""

    def complete(self, role: str, system_preamble: str, prompt: str, max_tokens: int) -> str:
        if role not in VALID_ROLES:
            raise ValueError(f"Invalid role '{role}'. Must be one of: {VALID_ROLES}")

        config = get_config()
        messages = [
            {"role": "system", "content": system_preamble},
            {"role": "user", "content": prompt},
        ]
        try:
            llm = _build_llm(
                config[f"{role}_provider"],
                config[f"{role}_model"],
                config.get("temperature", 0),
                max_tokens,
            )
            response = invoke_with_retry(llm, messages)
        except Exception as exc:
            raise CompletionError(role, str(exc) or repr(exc)) from exc
        return _content_text(response.content)

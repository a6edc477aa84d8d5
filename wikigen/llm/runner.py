"""Adapters around text-generation backends (OpenAI-compatible HTTP, claude and codex CLIs)."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..errors import ExternalToolFailure
from ..logging import redact_url

_AUTO_BASE_URL = object()
_AUTO_API_KEY = object()

PROVIDERS: tuple[str, ...] = ("http", "claude-cli", "codex-cli")


@dataclass
class LLMRequest:
    """Represents a single generation request."""

    prompt: str
    system: Optional[str]
    provider: str
    model: str
    temperature: Optional[float]
    max_tokens: Optional[int]
    executable: Optional[str]
    base_url: Optional[str]
    api_key: Optional[str]
    request_timeout: Optional[float]


def collect_text(chunks: Iterable[str]) -> str:
    """Concatenate an incrementally streamed response into its final text."""
    return "".join(chunk for chunk in chunks if chunk)


class LLMRunner:
    """Executes prompts against the configured generation backend."""

    DEFAULT_MODEL = "gpt-4o-mini"
    DEFAULT_BASE_URL = "https://api.openai.com/v1"
    DEFAULT_EXECUTABLES = {"claude-cli": "claude", "codex-cli": "codex"}
    ENV_MODEL_KEYS = ("WIKIGEN_LLM_MODEL", "OPENAI_MODEL")
    ENV_BASE_URL_KEYS = ("WIKIGEN_LLM_BASE_URL", "OPENAI_BASE_URL")
    ENV_API_KEY_KEYS = ("WIKIGEN_LLM_API_KEY", "OPENAI_API_KEY")

    def __init__(
        self,
        provider: str = "http",
        model: str | None = None,
        *,
        base_url: str | None | object = _AUTO_BASE_URL,
        executable: str | None = None,
        temperature: Optional[float] = 0.2,
        max_tokens: Optional[int] = None,
        api_key: str | None | object = _AUTO_API_KEY,
        request_timeout: Optional[float] = 300.0,
        runner: Callable[[LLMRequest], str] | None = None,
    ) -> None:
        if provider not in PROVIDERS:
            raise ValueError(f"Unknown LLM provider {provider!r}; expected one of {', '.join(PROVIDERS)}")
        self.provider = provider
        self.model = self._resolve_model(model)
        self.base_url = self._resolve_base_url(base_url)
        self.executable = executable or self.DEFAULT_EXECUTABLES.get(provider)
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_key = self._resolve_api_key(api_key)
        self.request_timeout = request_timeout
        if runner is not None:
            self._runner = runner
        elif provider == "claude-cli":
            self._runner = self._claude_runner
        elif provider == "codex-cli":
            self._runner = self._codex_runner
        else:
            self._runner = self._http_runner

    def run(self, prompt: str, *, system: str | None = None) -> str:
        """Send the prompt to the configured backend and return the response text."""
        request = LLMRequest(
            prompt=prompt,
            system=system,
            provider=self.provider,
            model=self.model,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            executable=self.executable,
            base_url=self.base_url,
            api_key=self.api_key,
            request_timeout=self.request_timeout,
        )
        return self._runner(request)

    # ------------------------------------------------------------------
    # CLI providers

    @staticmethod
    def _claude_runner(request: LLMRequest) -> str:
        prompt = request.prompt
        if request.system:
            prompt = f"{request.system}\n\n{prompt}"
        args = [request.executable or "claude", "-p"]
        return _run_command(args, prompt).rstrip()

    @staticmethod
    def _codex_runner(request: LLMRequest) -> str:
        prompt = request.prompt
        if request.system:
            prompt = f"{request.system}\n\n{prompt}"
        args = [request.executable or "codex", "exec", "--json", "-"]
        output = _run_command(args, prompt)
        return LLMRunner._extract_codex_messages(output)

    @staticmethod
    def _extract_codex_messages(output: str) -> str:
        messages: list[str] = []
        for line in output.splitlines():
            if not line.strip():
                continue
            try:
                parsed = json.loads(line)
            except json.JSONDecodeError:
                continue
            if not isinstance(parsed, dict):
                continue
            message = parsed.get("msg")
            if not isinstance(message, dict) or message.get("type") != "agent_message":
                continue
            text = message.get("message")
            if isinstance(text, str) and text.strip():
                messages.append(text.rstrip())
        if not messages:
            raise ExternalToolFailure("codex exec", detail="no agent_message output was returned")
        return "\n\n".join(messages)

    # ------------------------------------------------------------------
    # HTTP provider

    @staticmethod
    def _http_runner(request: LLMRequest) -> str:
        if not request.base_url:
            raise ExternalToolFailure("LLM HTTP request", detail="no base_url configured")
        endpoint = f"{request.base_url}/chat/completions"
        payload: dict[str, object] = {
            "model": request.model,
            "messages": LLMRunner._build_messages(request.system, request.prompt),
        }
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens

        data = json.dumps(payload).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        if request.api_key:
            headers["Authorization"] = f"Bearer {request.api_key}"

        http_request = Request(endpoint, data=data, headers=headers, method="POST")
        timeout = request.request_timeout or 300.0
        command = f"POST {redact_url(endpoint)}"

        try:
            with urlopen(http_request, timeout=timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            raise ExternalToolFailure(
                command, returncode=exc.code, detail=detail.strip() or str(exc.reason)
            ) from exc
        except URLError as exc:
            raise ExternalToolFailure(command, detail=str(exc.reason)) from exc

        try:
            response_payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise ExternalToolFailure(command, detail="response was not valid JSON") from exc

        content = LLMRunner._extract_content(response_payload)
        if not content:
            raise ExternalToolFailure(command, detail="response contained no text")
        return content.strip()

    @staticmethod
    def _build_messages(system: str | None, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})
        return messages

    @staticmethod
    def _extract_content(payload: dict[str, object]) -> str:
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            return ""
        first = choices[0]
        if not isinstance(first, dict):
            return ""
        message = first.get("message")
        if isinstance(message, dict):
            content = message.get("content")
            if isinstance(content, str):
                return content
            if isinstance(content, list):
                return collect_text(
                    block.get("text", "") for block in content if isinstance(block, dict)
                )
        text = first.get("text")
        if isinstance(text, str):
            return text
        return ""

    # ------------------------------------------------------------------
    # Resolution helpers

    def _resolve_model(self, model: str | None) -> str:
        if model:
            return model
        env_value = self._first_env_value(self.ENV_MODEL_KEYS)
        if env_value:
            return env_value
        return self.DEFAULT_MODEL

    def _resolve_base_url(self, base_url: str | None | object) -> str | None:
        if base_url is None:
            return None
        if base_url is not _AUTO_BASE_URL:
            return str(base_url).rstrip("/")
        env_value = self._first_env_value(self.ENV_BASE_URL_KEYS)
        if env_value:
            return env_value.rstrip("/")
        return self.DEFAULT_BASE_URL

    def _resolve_api_key(self, api_key: str | None | object) -> str | None:
        if api_key is _AUTO_API_KEY:
            return self._first_env_value(self.ENV_API_KEY_KEYS)
        return api_key  # type: ignore[return-value]

    @staticmethod
    def _first_env_value(keys: Sequence[str]) -> str | None:
        for key in keys:
            value = os.getenv(key)
            if value:
                return value
        return None


def _run_command(args: Sequence[str], input_text: str) -> str:
    try:
        completed = subprocess.run(
            list(args),
            input=input_text,
            check=True,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise ExternalToolFailure(
            args[0], detail=f"command not found; ensure {args[0]!r} is installed and on the PATH"
        ) from exc
    except subprocess.CalledProcessError as exc:
        raise ExternalToolFailure(
            " ".join(args), returncode=exc.returncode, detail=redact_url(exc.stderr or "")
        ) from exc
    return completed.stdout


__all__ = ["LLMRequest", "LLMRunner", "PROVIDERS", "collect_text"]

"""On-demand analysis of ledger lines by a remote chat-completion service.

The service answers with free text; suggested commands are extracted for
display only and are never executed here.
"""

from __future__ import annotations

import json
import logging
import threading
import time
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import Any, Callable

from kernel_watchdog.core.config import DiagnosticsConfig
from kernel_watchdog.core.store import SnapshotStore

logger = logging.getLogger(__name__)

FIX_MARKER = "FIX_CMD:"
PROMPT_HEADER = (
    "Linux kernel diagnostic expert. Analyze the kernel log lines below: "
    "give a severity from 1 to 10, the root cause, and a remediation shell "
    "script in a ```bash fenced block (prefix single commands with FIX_CMD:).\n"
)

Opener = Callable[..., Any]


class DiagnosticError(RuntimeError):
    """The service could not produce an answer."""


@dataclass(frozen=True)
class DiagnosticResult:
    response: str = ""
    fix: str = ""
    error: str = ""
    finished_at: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "response": self.response,
            "fix": self.fix,
            "error": self.error,
            "finished_at": self.finished_at,
        }


def build_prompt(lines: list[str]) -> str:
    return PROMPT_HEADER + "```\n" + "\n".join(lines) + "\n```"


def extract_fix(text: str) -> str:
    """Collect ``FIX_CMD:`` lines and non-empty lines of bash/sh fences."""

    fix_lines: list[str] = []
    in_shell = False
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(FIX_MARKER):
            fix_lines.append(stripped[len(FIX_MARKER):].strip())
            continue
        if stripped.startswith("```bash") or stripped.startswith("```sh"):
            in_shell = True
            continue
        if in_shell and stripped.startswith("```"):
            in_shell = False
            continue
        if in_shell and stripped:
            fix_lines.append(line)
    return "\n".join(fix_lines) + ("\n" if fix_lines else "")


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return "Empty response"


class DiagnosticClient:
    """Single HTTPS POST per question, fixed timeout, no retries."""

    def __init__(self, config: DiagnosticsConfig | None = None, opener: Opener = urllib.request.urlopen) -> None:
        self._config = config or DiagnosticsConfig()
        self._opener = opener

    def build_request(self, prompt: str) -> urllib.request.Request:
        body = {
            "model": self._config.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self._config.max_tokens,
            "temperature": self._config.temperature,
        }
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return urllib.request.Request(
            self._config.api_url,
            data=json.dumps(body).encode("utf-8"),
            headers=headers,
            method="POST",
        )

    def complete(self, prompt: str) -> str:
        request = self.build_request(prompt)
        try:
            with self._opener(request, timeout=self._config.timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            try:
                payload = json.loads(exc.read().decode("utf-8"))
            except (ValueError, OSError):
                payload = None
            message = _error_message(payload)
            raise DiagnosticError(f"HTTP {exc.code}: {message}") from exc
        except urllib.error.URLError as exc:
            raise DiagnosticError(str(exc.reason)) from exc
        except OSError as exc:  # timeouts, resets
            raise DiagnosticError(str(exc) or exc.__class__.__name__) from exc

        try:
            payload = json.loads(raw)
        except ValueError as exc:
            raise DiagnosticError("Invalid JSON response") from exc
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError):
            content = None
        if not content:
            raise DiagnosticError(_error_message(payload))
        return str(content)


class DiagnosticAssistant:
    """Runs at most one request at a time and keeps the latest result.

    A second request while one is in flight is rejected, not queued.
    """

    def __init__(self, client: DiagnosticClient) -> None:
        self._client = client
        self._slot = threading.Lock()
        self._result_lock = threading.Lock()
        self._result = DiagnosticResult()
        self._thread: threading.Thread | None = None

    @property
    def busy(self) -> bool:
        return self._slot.locked()

    def result(self) -> DiagnosticResult:
        with self._result_lock:
            return self._result

    def ask(self, text: str, background: bool = True) -> bool:
        if not self._slot.acquire(blocking=False):
            logger.info("Análisis en curso; solicitud descartada")
            return False
        if not background:
            self._run(text)
            return True
        self._thread = threading.Thread(target=self._run, args=(text,), name="DiagnosticRequest", daemon=True)
        self._thread.start()
        return True

    def analyze(self, store: SnapshotStore, limit: int = 20, background: bool = True) -> bool:
        lines = store.recent_raw_lines(limit)
        if not lines:
            with self._result_lock:
                self._result = DiagnosticResult(error="No logs", finished_at=time.time())
            return False
        return self.ask(build_prompt(lines), background=background)

    def wait(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def _run(self, prompt: str) -> None:
        try:
            try:
                response = self._client.complete(prompt)
            except DiagnosticError as exc:
                logger.warning("Servicio de diagnóstico falló: %s", exc)
                result = DiagnosticResult(error=str(exc) or "API failed", finished_at=time.time())
            else:
                result = DiagnosticResult(
                    response=response,
                    fix=extract_fix(response),
                    finished_at=time.time(),
                )
            with self._result_lock:
                self._result = result
        finally:
            self._slot.release()

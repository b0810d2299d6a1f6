"""Runtime settings for the lead research chat.

Everything comes from environment variables so the Streamlit app, tests and
scripts share one source. `Settings` is frozen; build a new one with
`dataclasses.replace` to change a value.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_MODEL = "gpt-4.1-mini"
DEFAULT_TEMPERATURE = 0.1
DEFAULT_MAX_OUTPUT_TOKENS = 3000
DEFAULT_HISTORY_WINDOW = 12  # 6 exchanges
DEFAULT_TIMEOUT_S = 60.0

_VALID_REASONING_EFFORTS = frozenset({"minimal", "low", "medium", "high"})


def _env_str(env: Mapping[str, str], key: str) -> Optional[str]:
    value = (env.get(key) or "").strip()
    return value or None


def _env_float(env: Mapping[str, str], key: str, default: float) -> float:
    value = _env_str(env, key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {value!r}") from exc


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    value = _env_str(env, key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Completion, usage-logging and logging parameters.

    Attributes
    ----------
    model:
        OpenAI model identifier used for every completion.
    temperature:
        Sampling temperature; kept low so repeated searches stay stable.
    max_output_tokens:
        Output cap per completion. Truncated output is handled by salvage.
    reasoning_effort:
        Optional reasoning effort, only sent for reasoning models.
    history_window:
        Number of chat turns (user + model) replayed to the model.
    timeout_s:
        Request timeout for the OpenAI client and the usage sink.
    openai_api_key:
        Explicit key; when unset the OpenAI SDK reads ``OPENAI_API_KEY`` itself.
    firebase_api_key, firebase_project_id:
        Usage logging is disabled unless both are set.
    log_level, log_file:
        Passed to :func:`leadchat.logging.setup_logging`.
    """

    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    max_output_tokens: int = DEFAULT_MAX_OUTPUT_TOKENS
    reasoning_effort: Optional[str] = None
    history_window: int = DEFAULT_HISTORY_WINDOW
    timeout_s: float = DEFAULT_TIMEOUT_S
    openai_api_key: Optional[str] = None
    firebase_api_key: Optional[str] = None
    firebase_project_id: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @property
    def usage_enabled(self) -> bool:
        return bool(self.firebase_api_key and self.firebase_project_id)

    def validate(self) -> None:
        """Raise ``ValueError`` if any field is out of valid range."""
        if not self.model:
            raise ValueError("model must not be empty")
        if not (0.0 <= self.temperature <= 2.0):
            raise ValueError(f"temperature must be in [0, 2], got {self.temperature}")
        if self.max_output_tokens < 1:
            raise ValueError(
                f"max_output_tokens must be >= 1, got {self.max_output_tokens}"
            )
        if self.history_window < 0 or self.history_window % 2:
            raise ValueError(
                f"history_window must be an even number >= 0, got {self.history_window}"
            )
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0, got {self.timeout_s}")
        if (
            self.reasoning_effort is not None
            and self.reasoning_effort not in _VALID_REASONING_EFFORTS
        ):
            raise ValueError(
                f"reasoning_effort must be one of {sorted(_VALID_REASONING_EFFORTS)}, "
                f"got {self.reasoning_effort!r}"
            )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> Settings:
        env = os.environ if env is None else env
        effort = _env_str(env, "LEADCHAT_REASONING_EFFORT")
        settings = cls(
            model=_env_str(env, "LEADCHAT_MODEL") or DEFAULT_MODEL,
            temperature=_env_float(env, "LEADCHAT_TEMPERATURE", DEFAULT_TEMPERATURE),
            max_output_tokens=_env_int(
                env, "LEADCHAT_MAX_OUTPUT_TOKENS", DEFAULT_MAX_OUTPUT_TOKENS
            ),
            reasoning_effort=effort.lower() if effort else None,
            history_window=_env_int(env, "LEADCHAT_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW),
            timeout_s=_env_float(env, "LEADCHAT_TIMEOUT_S", DEFAULT_TIMEOUT_S),
            openai_api_key=_env_str(env, "OPENAI_API_KEY"),
            firebase_api_key=_env_str(env, "FIREBASE_API_KEY"),
            firebase_project_id=_env_str(env, "FIREBASE_PROJECT_ID"),
            log_level=(_env_str(env, "LEADCHAT_LOG_LEVEL") or "INFO").upper(),
            log_file=_env_str(env, "LEADCHAT_LOG_FILE"),
        )
        settings.validate()
        return settings


__all__ = ["Settings"]

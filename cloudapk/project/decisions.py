"""
Operator decision providers.

A decision provider is any callable taking a Decision and returning the
answer. Preprocessing only sees that callable, so answers can come from
the terminal, a scripted YAML file, or a test fixture.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import yaml

from cloudapk.build.config import BUILD_TYPES
from cloudapk.core.errors import ConfigurationError


class Decision(str, Enum):
    BUILD_TYPE = "build_type"
    CONTINUE_WITH_MISSING_ICONS = "continue_with_missing_icons"
    ENABLE_DEBUG_CONSOLE = "enable_debug_console"
    KEEP_SAFE_AREA = "keep_safe_area"


DecisionProvider = Callable[[Decision], Any]

DEFAULT_ANSWERS: dict[Decision, Any] = {
    Decision.BUILD_TYPE: "debug",
    Decision.CONTINUE_WITH_MISSING_ICONS: False,
    Decision.ENABLE_DEBUG_CONSOLE: False,
    Decision.KEEP_SAFE_AREA: True,
}

PROMPTS: dict[Decision, str] = {
    Decision.BUILD_TYPE: "Select build type",
    Decision.CONTINUE_WITH_MISSING_ICONS: "Icons are missing. Continue anyway?",
    Decision.ENABLE_DEBUG_CONSOLE: "Enable the vConsole debug console?",
    Decision.KEEP_SAFE_AREA: "Keep safe-area padding?",
}


def _validate(decision: Decision, answer: Any) -> Any:
    if decision is Decision.BUILD_TYPE:
        if answer not in BUILD_TYPES:
            raise ConfigurationError(
                f"Invalid answer for {decision.value}: {answer!r} (expected one of {', '.join(BUILD_TYPES)})"
            )
        return answer
    if not isinstance(answer, bool):
        raise ConfigurationError(f"Invalid answer for {decision.value}: {answer!r} (expected true/false)")
    return answer


# =============================================================================
# Scripted
# =============================================================================


class ScriptedDecisions:
    """Answers from a fixed mapping, falling back to DEFAULT_ANSWERS."""

    def __init__(self, answers: Optional[Mapping[Any, Any]] = None):
        self.answers: dict[Decision, Any] = {}
        self.asked: list[Decision] = []
        for key, value in (answers or {}).items():
            try:
                decision = Decision(key)
            except ValueError:
                raise ConfigurationError(f"Unknown decision in answers: {key!r}") from None
            self.answers[decision] = _validate(decision, value)

    @classmethod
    def from_yaml(cls, path: Path) -> "ScriptedDecisions":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Could not read answers from {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"{path}: expected a mapping of decision -> answer")
        return cls(data)

    def __call__(self, decision: Decision) -> Any:
        self.asked.append(decision)
        return self.answers.get(decision, DEFAULT_ANSWERS[decision])


# =============================================================================
# Interactive
# =============================================================================


class TerminalDecisions:
    """Prompt the operator on the terminal."""

    def __init__(self, read: Callable[[str], str] = input):
        self._read = read

    def _confirm(self, decision: Decision) -> bool:
        default = DEFAULT_ANSWERS[decision]
        hint = "[Y/n]" if default else "[y/N]"
        reply = self._read(f"{PROMPTS[decision]} {hint}: ").strip().lower()
        if not reply:
            return default
        return reply in ("y", "yes")

    def _choose_build_type(self) -> str:
        default = DEFAULT_ANSWERS[Decision.BUILD_TYPE]
        options = "/".join(BUILD_TYPES)
        while True:
            reply = self._read(f"{PROMPTS[Decision.BUILD_TYPE]} ({options}) [{default}]: ").strip().lower()
            if not reply:
                return default
            if reply in BUILD_TYPES:
                return reply
            print(f"  Please answer one of: {options}")

    def __call__(self, decision: Decision) -> Any:
        if decision is Decision.BUILD_TYPE:
            return self._choose_build_type()
        return self._confirm(decision)

"""
cloudapk.project - Local project mutation before a cloud build.

Manifest editing, plugin detection, index.html injection, and the
preprocessing pass that composes them.
"""

from cloudapk.project.decisions import (
    DEFAULT_ANSWERS,
    Decision,
    DecisionProvider,
    ScriptedDecisions,
    TerminalDecisions,
)
from cloudapk.project.injector import InjectionOptions, inject, strip_injection
from cloudapk.project.preprocess import PreprocessResult, preprocess

__all__ = [
    # Decisions
    "DEFAULT_ANSWERS",
    "Decision",
    "DecisionProvider",
    "ScriptedDecisions",
    "TerminalDecisions",
    # Injection
    "InjectionOptions",
    "inject",
    "strip_injection",
    # Preprocessing
    "PreprocessResult",
    "preprocess",
]

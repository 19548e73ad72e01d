"""Runtime configuration for the tracify engines."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Literal, TypeAlias

HandlerFailurePolicy: TypeAlias = Literal["resume", "throw"]

_TRUTHY = ("1", "true", "yes")
_POLICIES: tuple[HandlerFailurePolicy, ...] = ("resume", "throw")


@dataclass(frozen=True)
class TracifyConfig:
    """Engine settings.

    Attributes:
        debug: Log every runtime request and verifier step at INFO instead of DEBUG.
        handler_failures: ``"resume"`` feeds a handler's exception back into the
            computation as its resumption value. ``"throw"`` raises it at the
            suspension point instead.
    """

    debug: bool = False
    handler_failures: HandlerFailurePolicy = "resume"

    def __post_init__(self) -> None:
        if self.handler_failures not in _POLICIES:
            raise ValueError(
                f"handler_failures must be one of {_POLICIES}, got {self.handler_failures!r}"
            )

    @property
    def step_log_level(self) -> int:
        return logging.INFO if self.debug else logging.DEBUG

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> TracifyConfig:
        """Read ``TRACIFY_DEBUG`` and ``TRACIFY_HANDLER_FAILURES``."""

        env = os.environ if environ is None else environ
        debug = env.get("TRACIFY_DEBUG", "").lower() in _TRUTHY
        policy = env.get("TRACIFY_HANDLER_FAILURES", "resume").strip().lower() or "resume"
        return cls(debug=debug, handler_failures=policy)  # type: ignore[arg-type]


def resolve_config(config: TracifyConfig | None) -> TracifyConfig:
    return TracifyConfig.from_env() if config is None else config


__all__ = ["HandlerFailurePolicy", "TracifyConfig", "resolve_config"]

"""Observer hooks invoked around every handler call made by the runtimes.

Observers are purely side channels: they cannot change the value a handler
produced or the order handlers run in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, TypeAlias, runtime_checkable

from loguru import logger as loguru_logger

ObservedAction: TypeAlias = Literal["enter", "leave"]


@runtime_checkable
class Observer(Protocol):
    def enter(self, name: str, arguments: tuple[Any, ...]) -> None: ...

    def leave(self, name: str, result: Any) -> None: ...


@dataclass(frozen=True)
class ObservedCall:
    action: ObservedAction
    name: str
    payload: Any


@dataclass
class RecordingObserver:
    """Collects every enter/leave notification in arrival order."""

    calls: list[ObservedCall] = field(default_factory=list)

    def enter(self, name: str, arguments: tuple[Any, ...]) -> None:
        self.calls.append(ObservedCall("enter", name, arguments))

    def leave(self, name: str, result: Any) -> None:
        self.calls.append(ObservedCall("leave", name, result))

    @property
    def names(self) -> list[str]:
        """Effect names in the order their handlers were entered."""

        return [call.name for call in self.calls if call.action == "enter"]


@dataclass(frozen=True)
class LoguruObserver:
    level: str = "DEBUG"
    component: str = "tracify"

    def enter(self, name: str, arguments: tuple[Any, ...]) -> None:
        loguru_logger.bind(component=self.component).log(
            self.level, "enter {} args={!r}", name, arguments
        )

    def leave(self, name: str, result: Any) -> None:
        loguru_logger.bind(component=self.component).log(
            self.level, "leave {} result={!r}", name, result
        )


def loguru_observer(level: str = "DEBUG") -> LoguruObserver:
    """Observer that logs each handler call through loguru."""

    return LoguruObserver(level=level)


__all__ = [
    "LoguruObserver",
    "ObservedAction",
    "ObservedCall",
    "Observer",
    "RecordingObserver",
    "loguru_observer",
]

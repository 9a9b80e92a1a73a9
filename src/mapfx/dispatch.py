"""Command dispatcher — run now, or queue until every map is ready.

``submit`` executes a command synchronously when the engine is ready and
returns its value. Otherwise the command is queued and a ResultToken is
returned in its place. When the last map becomes ready the queue drains
once, in submission order; tokens found in a queued command's arguments are
replaced by the values of the earlier commands they stand for.

Deferred failures: a MapError raised while replaying is recorded on that
command's token (and in ``Dispatcher.errors``) and the drain goes on. Any
other exception aborts the drain; the commands not yet replayed fail with
BatchAborted and the exception propagates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from mapfx.commands import lookup
from mapfx.errors import BatchAborted, MapError, PendingResult

if TYPE_CHECKING:
    from mapfx.commands import Command
    from mapfx.engine import Engine

logger = logging.getLogger("mapfx.dispatch")

_UNSET = object()


class ResultToken:
    """Forward reference to the result of a queued command.

    Behaves like a settled-once future: ``done()``, ``result()``,
    ``exception()``. It can be passed as an argument to later commands of
    the same batch.
    """

    __slots__ = ("position", "operation", "_value", "_error")

    def __init__(self, position: int, operation: str) -> None:
        self.position = position
        self.operation = operation
        self._value = _UNSET
        self._error: BaseException | None = None

    def done(self) -> bool:
        return self._value is not _UNSET or self._error is not None

    def result(self) -> Any:
        """The command's value. Raises its error, or PendingResult if not replayed yet."""
        if self._error is not None:
            raise self._error
        if self._value is _UNSET:
            raise PendingResult(f"{self.operation} at queue position {self.position} has not run")
        return self._value

    def exception(self) -> BaseException | None:
        if not self.done():
            raise PendingResult(f"{self.operation} at queue position {self.position} has not run")
        return self._error

    def _resolve(self, value: Any) -> None:
        self._value = value

    def _fail(self, error: BaseException) -> None:
        self._error = error

    def __repr__(self) -> str:
        if self._error is not None:
            state = f"failed={self._error!r}"
        elif self._value is not _UNSET:
            state = f"result={self._value!r}"
        else:
            state = "pending"
        return f"ResultToken({self.operation}#{self.position}, {state})"


def resolve(value: Any) -> Any:
    """Unwrap a token to its value; anything else passes through."""
    if isinstance(value, ResultToken):
        return value.result()
    if isinstance(value, list):
        return [resolve(v) if isinstance(v, ResultToken) else v for v in value]
    if isinstance(value, tuple):
        return tuple(resolve(v) if isinstance(v, ResultToken) else v for v in value)
    return value


@dataclass(slots=True)
class WorkItem:
    map_id: int
    command: Command
    args: tuple
    kwargs: dict
    token: ResultToken


@dataclass(slots=True)
class DeferredFailure:
    map_id: int
    operation: str
    error: MapError


@dataclass
class Dispatcher:
    engine: Engine
    queue: list[WorkItem] = field(default_factory=list)
    errors: list[DeferredFailure] = field(default_factory=list)

    def submit(self, map_id: int, operation: int | str, args: tuple = (), kwargs: dict | None = None):
        command = lookup(operation)
        kwargs = kwargs or {}
        if self.engine.is_ready:
            return self._execute(map_id, command, args, kwargs)
        token = ResultToken(len(self.queue), command.name)
        self.queue.append(WorkItem(map_id, command, args, kwargs, token))
        logger.debug("queued %s on map %d as #%d", command.name, map_id, token.position)
        return token

    def _execute(self, map_id: int, command: Command, args: tuple, kwargs: dict):
        args = tuple(resolve(a) for a in args)
        kwargs = {k: resolve(v) for k, v in kwargs.items()}
        events = self.engine.events
        try:
            result = command.body(self.engine, map_id, *args, **kwargs)
        except Exception:
            events.abandon()
            raise
        events.notify(map_id, command.subjects, command.events)
        return result

    def drain(self) -> None:
        """Replay every queued command in submission order."""
        batch, self.queue = self.queue, []
        if not batch:
            return
        logger.debug("draining %d queued commands", len(batch))
        for index, item in enumerate(batch):
            try:
                value = self._execute(item.map_id, item.command, item.args, item.kwargs)
            except MapError as exc:
                item.token._fail(exc)
                self.errors.append(DeferredFailure(item.map_id, item.command.name, exc))
                logger.warning(
                    "queued %s on map %d failed: %s", item.command.name, item.map_id, exc
                )
            except Exception as exc:
                item.token._fail(exc)
                for rest in batch[index + 1:]:
                    rest.token._fail(BatchAborted(f"drain aborted by {exc!r}"))
                raise
            else:
                item.token._resolve(value)

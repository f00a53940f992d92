"""
Structured writer — indentation-tracked, ordered line emission.

Every backend generator emits its manifest through a ``WriterContext``
so no generator does its own indentation bookkeeping::

    ctx = WriterContext()
    ctx.write("services:")
    with ctx.indented():
        ctx.write("api:")
        with ctx.indented():
            ctx.write("image: demo/api")
            ctx.block("ports:", ['- "80:80"'])

The same operations exist as *write steps* — callables that take a
context — so pieces of a manifest can be built as values and sequenced
later::

    header = sequence(write("services:"), indented(write("api:")))
    WriterContext().run(header)

Steps run strictly in the order given. One context belongs to one
generation run and is never shared.
"""

from __future__ import annotations

import io
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import TextIO

INDENT_SIZE = 2
LINE_TERMINATOR = "\n"


class WriterStateError(RuntimeError):
    """Raised when indentation would drop below zero (unpaired indent)."""


class WriterContext:
    """Output sink plus the current indent level.

    Args:
        sink: Where lines go. Defaults to an in-memory buffer.
        indent_size: Spaces per indent level.
    """

    def __init__(self, sink: TextIO | None = None, indent_size: int = INDENT_SIZE) -> None:
        self._sink: TextIO = sink if sink is not None else io.StringIO()
        self._indent_size = indent_size
        self._level = 0

    @property
    def indent_level(self) -> int:
        return self._level

    def write(self, line: str) -> WriterContext:
        """Append *line* at the current indent, followed by a newline."""
        if line:
            self._sink.write(" " * (self._level * self._indent_size))
            self._sink.write(line)
        self._sink.write(LINE_TERMINATOR)
        return self

    @contextmanager
    def indented(self) -> Iterator[WriterContext]:
        """Write one level deeper for the duration of the ``with`` block.

        The previous level is restored on every exit path.
        """
        self._level += 1
        try:
            yield self
        finally:
            self._outdent()

    def _outdent(self) -> None:
        if self._level <= 0:
            raise WriterStateError("indent level cannot go below zero")
        self._level -= 1

    def block(self, header: str, lines: Iterable[str]) -> WriterContext:
        """Write *header* and its indented *lines*, or nothing if there are none."""
        members = list(lines)
        if not members:
            return self
        self.write(header)
        with self.indented():
            for line in members:
                self.write(line)
        return self

    def run(self, *steps: WriteStep) -> WriterContext:
        """Apply each step to this context, in order."""
        for step in steps:
            step(self)
        return self

    def getvalue(self) -> str:
        """Everything written so far (in-memory sinks only)."""
        getvalue = getattr(self._sink, "getvalue", None)
        if getvalue is None:
            raise TypeError(f"{type(self._sink).__name__} sink does not keep its content")
        return getvalue()


WriteStep = Callable[[WriterContext], object]


# ── Step constructors ───────────────────────────────────────────


def nothing(ctx: WriterContext) -> None:
    """The empty step: no lines, no indent change."""


def write(line: str) -> WriteStep:
    def step(ctx: WriterContext) -> None:
        ctx.write(line)

    return step


def sequence(*steps: WriteStep) -> WriteStep:
    def step(ctx: WriterContext) -> None:
        ctx.run(*steps)

    return step


def indented(*steps: WriteStep) -> WriteStep:
    def step(ctx: WriterContext) -> None:
        with ctx.indented():
            ctx.run(*steps)

    return step


def block(header: str, lines: Iterable[str]) -> WriteStep:
    """Step form of ``WriterContext.block``; *lines* are captured now."""
    members = list(lines)
    if not members:
        return nothing

    def step(ctx: WriterContext) -> None:
        ctx.block(header, members)

    return step


def when(condition: bool, *steps: WriteStep) -> WriteStep:
    """Run *steps* only if *condition* holds."""
    return sequence(*steps) if condition else nothing

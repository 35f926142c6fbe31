"""Scripted multi-step actions driven by events.

A script is Python source defining ``main(jj)``, normally a generator. Each
``yield`` hands one instruction to the front end and suspends the script
until the matching reply arrives::

    def main(jj):
        out = yield jj.run("log", "-r", "@", "--no-graph")
        choice = yield jj.choose("Pick one", out.splitlines())
        if choice is not None:
            yield jj.flash(f"picked {choice}")

``run`` resumes with the command output (a failing command is thrown into
the generator as ``CommandError``). ``choose``, ``input`` and ``password``
resume with the modal result, ``None`` when cancelled. The remaining
instructions are acknowledged with an empty reply.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Generator, Mapping
from typing import Protocol

from ..errors import LazyJJError, ScriptError
from ..events import CommandCompleted, Event, ModalResult, ScriptInstruction, ScriptReply

logger = logging.getLogger(__name__)

MODAL_INSTRUCTIONS = frozenset({"choose", "input", "password"})
REPLY_INSTRUCTIONS = frozenset({"run", "flash", "revset", "refresh", "diff"})


class ScriptSession(Protocol):
    def handle_event(self, event: Event | None) -> Event | None: ...

    def is_done(self) -> bool: ...

    def close(self) -> None: ...


class ScriptEngine(Protocol):
    def start(self, source: str, context: Mapping[str, str] | None = None) -> ScriptSession: ...


class ScriptAPI:
    """Instruction builders handed to ``main(jj)``."""

    def __init__(self, context: Mapping[str, str] | None = None) -> None:
        self.context = dict(context or {})

    def run(self, *args: str) -> ScriptInstruction:
        return ScriptInstruction("run", tuple(str(arg) for arg in args))

    def flash(self, message: str, error: bool = False) -> ScriptInstruction:
        return ScriptInstruction("flash", (str(message), bool(error)))

    def revset(self, revset: str) -> ScriptInstruction:
        return ScriptInstruction("revset", (str(revset),))

    def refresh(self) -> ScriptInstruction:
        return ScriptInstruction("refresh")

    def diff(self, text: str) -> ScriptInstruction:
        return ScriptInstruction("diff", (str(text),))

    def choose(self, title: str, options) -> ScriptInstruction:
        return ScriptInstruction("choose", (str(title), tuple(str(option) for option in options)))

    def input(self, title: str, prompt: str = "") -> ScriptInstruction:
        return ScriptInstruction("input", (str(title), str(prompt)))

    def password(self, prompt: str) -> ScriptInstruction:
        return ScriptInstruction("password", (str(prompt),))


class PythonScriptSession:
    def __init__(self, generator: Generator | None) -> None:
        self._generator = generator
        self._started = False
        self._awaiting: type[Event] | None = None
        self._done = generator is None

    def is_done(self) -> bool:
        return self._done

    def close(self) -> None:
        if self._generator is not None:
            self._generator.close()
            self._generator = None
        self._done = True

    def handle_event(self, event: Event | None) -> Event | None:
        if self._done or self._generator is None:
            return None
        if not self._started:
            self._started = True
            return self._step(lambda gen: next(gen))
        if self._awaiting is None or not isinstance(event, self._awaiting):
            return None
        if isinstance(event, ScriptReply) and event.error is not None:
            error = event.error
            return self._step(lambda gen: gen.throw(error))
        value = event.output if isinstance(event, ScriptReply) else event.value
        return self._step(lambda gen: gen.send(value))

    def _step(self, advance) -> Event | None:
        try:
            instruction = advance(self._generator)
        except StopIteration:
            self.close()
            return None
        except LazyJJError as exc:
            self.close()
            raise ScriptError(f"script failed: {exc}") from exc
        except Exception as exc:
            self.close()
            raise ScriptError(f"script raised {type(exc).__name__}: {exc}") from exc
        if not isinstance(instruction, ScriptInstruction):
            self.close()
            raise ScriptError(f"script yielded {type(instruction).__name__}, expected an instruction")
        if instruction.kind in MODAL_INSTRUCTIONS:
            self._awaiting = ModalResult
        elif instruction.kind in REPLY_INSTRUCTIONS:
            self._awaiting = ScriptReply
        else:
            self.close()
            raise ScriptError(f"unknown script instruction {instruction.kind!r}")
        return instruction


class PythonScriptEngine:
    """Compile script text and start its ``main(jj)`` entry point."""

    def start(self, source: str, context: Mapping[str, str] | None = None) -> PythonScriptSession:
        namespace: dict[str, object] = {"__name__": "__lazyjj_script__"}
        try:
            code = compile(source, "<script>", "exec")
            exec(code, namespace)
        except Exception as exc:
            raise ScriptError(f"script failed to load: {exc}") from exc
        main = namespace.get("main")
        if not callable(main):
            raise ScriptError("script does not define main(jj)")
        try:
            result = main(ScriptAPI(context))
        except Exception as exc:
            raise ScriptError(f"script raised {type(exc).__name__}: {exc}") from exc
        return PythonScriptSession(result if inspect.isgenerator(result) else None)


class ScriptBridge:
    """Owns the single active script session.

    Starting a script while another one runs cancels the older one. Each
    delivered event yields at most one instruction. The session is released
    exactly once, the first time it reports done.
    """

    def __init__(self, engine: ScriptEngine | None = None) -> None:
        self._engine = engine if engine is not None else PythonScriptEngine()
        self._session: ScriptSession | None = None

    @property
    def active(self) -> bool:
        return self._session is not None

    def start(self, source: str, context: Mapping[str, str] | None = None) -> Event | None:
        self.cancel()
        try:
            self._session = self._engine.start(source, context)
        except ScriptError as exc:
            logger.exception("script failed to start")
            return CommandCompleted(error=exc)
        return self._advance(None)

    def deliver(self, event: Event) -> Event | None:
        if self._session is None:
            return None
        return self._advance(event)

    def cancel(self) -> None:
        if self._session is not None:
            session = self._session
            self._session = None
            session.close()

    def _advance(self, event: Event | None) -> Event | None:
        session = self._session
        if session is None:
            return None
        try:
            instruction = session.handle_event(event)
        except ScriptError as exc:
            logger.exception("script fault")
            self._release(session)
            return CommandCompleted(error=exc)
        if session.is_done():
            self._release(session)
        return instruction

    def _release(self, session: ScriptSession) -> None:
        if self._session is session:
            self._session = None
            session.close()


__all__ = [
    "PythonScriptEngine",
    "PythonScriptSession",
    "ScriptAPI",
    "ScriptBridge",
    "ScriptEngine",
    "ScriptSession",
]

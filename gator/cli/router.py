from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence

from gator.config.gator_config import GatorConfig
from gator.config.settings import Settings
from gator.db.store import Store
from gator.errors import CommandNotFound, UsageError


@dataclass
class State:
    """Session state shared by every handler of one invocation."""

    config: GatorConfig
    store: Store
    settings: Settings


Handler = Callable[[State, list[str]], None]


@dataclass
class Command:
    name: str
    handler: Handler
    # "url" is required, "[limit]" is optional
    params: tuple[str, ...] = ()

    @property
    def min_args(self) -> int:
        return sum(1 for p in self.params if not p.startswith("["))

    @property
    def max_args(self) -> int:
        return len(self.params)

    def usage(self) -> str:
        parts = [p if p.startswith("[") else f"<{p}>" for p in self.params]
        return " ".join([self.name, *parts])


class CommandRouter:
    def __init__(self) -> None:
        self._commands: dict[str, Command] = {}

    def register(self, name: str, handler: Handler, params: Sequence[str] = ()) -> None:
        self._commands[name] = Command(name=name, handler=handler, params=tuple(params))

    def __contains__(self, name: str) -> bool:
        return name in self._commands

    def check(self, name: str, args: Sequence[str]) -> Command:
        """
        Resolve `name` and validate the argument count, without running anything.
        """
        cmd = self._commands.get(name)
        if cmd is None:
            raise CommandNotFound(name)
        if not cmd.min_args <= len(args) <= cmd.max_args:
            raise UsageError(f"usage: {cmd.usage()}")
        return cmd

    def run(self, state: State, name: str, args: Sequence[str]) -> None:
        cmd = self.check(name, args)
        cmd.handler(state, list(args))

    def usage(self) -> list[str]:
        return [cmd.usage() for cmd in self._commands.values()]

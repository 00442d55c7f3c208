"""Actions emitted by the conversation manager for the host to render."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ActionKind(str, Enum):
    """What the host should do next."""

    CLARIFY = "clarify"  # Ask for one missing value
    CONFIRM = "confirm"  # Show summary, wait for y/n
    EXECUTE = "execute"  # Run the command now
    CANCEL = "cancel"  # Operation abandoned
    DISAMBIGUATE = "disambiguate"  # Offer candidate interpretations
    RESPOND = "respond"  # Static informational reply
    OUT_OF_SCOPE = "out_of_scope"  # Request rejected


@dataclass
class Clarify:
    question: str
    field: str
    suggestions: list[str] = field(default_factory=list)
    kind: ActionKind = field(default=ActionKind.CLARIFY, init=False)


@dataclass
class Confirm:
    summary: str
    command: str
    details: list[tuple[str, str]] = field(default_factory=list)
    kind: ActionKind = field(default=ActionKind.CONFIRM, init=False)


@dataclass
class Execute:
    command: str
    kind: ActionKind = field(default=ActionKind.EXECUTE, init=False)


@dataclass
class Cancel:
    message: str
    kind: ActionKind = field(default=ActionKind.CANCEL, init=False)


@dataclass
class Disambiguate:
    message: str
    options: list[str] = field(default_factory=list)
    kind: ActionKind = field(default=ActionKind.DISAMBIGUATE, init=False)


@dataclass
class Respond:
    message: str
    kind: ActionKind = field(default=ActionKind.RESPOND, init=False)


@dataclass
class OutOfScope:
    message: str
    kind: ActionKind = field(default=ActionKind.OUT_OF_SCOPE, init=False)


Action = Union[Clarify, Confirm, Execute, Cancel, Disambiguate, Respond, OutOfScope]

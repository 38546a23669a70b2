from dataclasses import dataclass, field
from typing import Any, Optional, Set
import threading

MAX_NAME_LENGTH = 50


class InvalidName(ValueError):
    """A display name was rejected by the registry."""


class EmptyName(InvalidName):
    pass


class NameTooLong(InvalidName):
    pass


@dataclass(eq=False)
class Member:
    identity: str
    display_name: str
    transports: Set[Any] = field(default_factory=set)
    rooms: Set[str] = field(default_factory=set)
    # Guards every field above; owned by the registry
    lock: Any = field(default_factory=threading.Lock, repr=False, compare=False)
    removed: bool = field(default=False, repr=False)

    def snapshot(self) -> 'Member':
        """Copy the public fields. Caller must hold ``lock``."""
        return Member(
            identity=self.identity,
            display_name=self.display_name,
            transports=set(self.transports),
            rooms=set(self.rooms),
        )

    def to_dict(self):
        return {
            'identity': self.identity,
            'display_name': self.display_name,
            'connections': len(self.transports),
            'rooms': sorted(self.rooms),
        }


# ---- Parsed commands ----

@dataclass(frozen=True)
class Who:
    pass


@dataclass(frozen=True)
class Help:
    pass


@dataclass(frozen=True)
class Rename:
    new_name: str


@dataclass(frozen=True)
class JoinRoom:
    room: str


@dataclass(frozen=True)
class LeaveRoom:
    room: str


@dataclass(frozen=True)
class UnknownCommand:
    verb: str


@dataclass(frozen=True)
class GameAction:
    room: str
    sender: str
    action: str
    payload: str

    def encode(self) -> str:
        return f"@{self.room}#{self.sender}->/{self.action}:{self.payload}"


@dataclass(frozen=True)
class PlainMessage:
    text: str


def validate_name(raw: Optional[str]) -> str:
    """Return the trimmed name or raise ``EmptyName`` / ``NameTooLong``."""
    name = (raw or '').strip()
    if not name:
        raise EmptyName('/user [newName]')
    if len(name) > MAX_NAME_LENGTH:
        raise NameTooLong(f'new name is too long: {MAX_NAME_LENGTH} characters limit')
    return name

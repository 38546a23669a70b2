import logging
import threading
from collections import deque
from typing import Any, Iterable, List, Optional

from mazechat.models import (
    GameAction,
    Help,
    InvalidName,
    JoinRoom,
    LeaveRoom,
    PlainMessage,
    Rename,
    UnknownCommand,
    Who,
)
from .parser import parse
from .registry import MemberRegistry

HELP_TEXT = 'Possible commands are: /user, /help, /who, /join and /part'


class GameServer:
    """Routes parsed commands to one member, every member or a room.

    Outbound lines are ``[<sender>] <text>``: ``server`` for system
    broadcasts, ``server::help`` / ``server::info`` / ``server::who`` for
    replies to one member, the display name for chat lines. Game actions are
    re-sent in their inbound ``@room#sender->/action:message`` form.
    """

    def __init__(self, registry: Optional[MemberRegistry] = None, logger=None, history_size: int = 100):
        self.registry = registry if registry is not None else MemberRegistry()
        self.logger = logger or logging.getLogger(__name__)
        self._history = deque(maxlen=max(0, int(history_size)))
        self._history_lock = threading.Lock()

    # ---- Connection lifecycle ----

    def member_join(self, identity: str, transport: Any) -> None:
        created = self.registry.join(identity, transport)
        self.logger.info(f"[join] identity={identity} new_member={created}")
        with self._history_lock:
            backlog = list(self._history)
        self._deliver([transport], backlog)
        if created:
            self.broadcast('server', f"Member joined: {identity}.")

    def member_left(self, identity: str, transport: Any) -> None:
        gone = self.registry.leave(identity, transport)
        if gone is None:
            return
        self.logger.info(f"[left] identity={identity}")
        self.broadcast('server', f"Member left: {gone.display_name}.")

    def shutdown(self) -> None:
        dropped = self.registry.clear()
        self.logger.info(f"[shutdown] members={len(dropped)}")
        for member in dropped:
            for transport in member.transports:
                self._close(transport, 'server shutdown')

    # ---- Inbound ----

    def handle(self, identity: str, text: str) -> None:
        self.dispatch(identity, parse(text))

    def dispatch(self, identity: str, command) -> None:
        if isinstance(command, Who):
            self.who(identity)
        elif isinstance(command, Rename):
            self.member_renamed(identity, command.new_name)
        elif isinstance(command, Help):
            self.send_to(identity, 'server::help', HELP_TEXT)
        elif isinstance(command, JoinRoom):
            self._join_room(identity, command.room)
        elif isinstance(command, LeaveRoom):
            self._leave_room(identity, command.room)
        elif isinstance(command, UnknownCommand):
            self.send_to(identity, 'server::help', f"Unknown command {command.verb}")
        elif isinstance(command, GameAction):
            self.broadcast_command(command)
        elif isinstance(command, PlainMessage):
            self.message(identity, command.text)
        else:
            raise TypeError(f"unsupported command {command!r}")

    def who(self, identity: str) -> None:
        names = [m.display_name for m in self.registry.all_members()]
        self.send_to(identity, 'server::who', ', '.join(names))

    def member_renamed(self, identity: str, new_name: str) -> None:
        try:
            renamed = self.registry.rename(identity, new_name)
        except InvalidName as exc:
            self.send_to(identity, 'server::help', str(exc))
            return
        if renamed is None:
            return
        old_name, name = renamed
        self.broadcast('server', f"Member renamed from {old_name} to {name}")

    def _join_room(self, identity: str, room: str) -> None:
        if not room:
            self.send_to(identity, 'server::help', '/join [room]')
            return
        if self.registry.join_room(identity, room):
            self.send_to(identity, 'server::info', f"Joined room {room}")

    def _leave_room(self, identity: str, room: str) -> None:
        if not room:
            self.send_to(identity, 'server::help', '/part [room]')
            return
        if self.registry.leave_room(identity, room):
            self.send_to(identity, 'server::info', f"Left room {room}")
        else:
            self.send_to(identity, 'server::info', f"Not in room {room}")

    def broadcast_command(self, action: GameAction) -> None:
        recipients = self.registry.members_in_room(action.room)
        if not recipients:
            self.logger.debug(f"[game-drop] room={action.room!r} action={action.action!r}")
            return
        line = action.encode()
        self._deliver([t for m in recipients for t in m.transports], [line])

    def message(self, identity: str, text: str) -> None:
        member = self.registry.lookup(identity)
        name = member.display_name if member else identity
        formatted = f"[{name}] {text}"
        with self._history_lock:
            self._history.append(formatted)
        self._deliver(self._all_transports(), [formatted])

    # ---- Outbound ----

    def send_to(self, identity: str, sender: str, text: str) -> None:
        self._deliver(self.registry.transports_of(identity), [f"[{sender}] {text}"])

    def broadcast(self, sender: str, text: str) -> None:
        self._deliver(self._all_transports(), [f"[{sender}] {text}"])

    def _all_transports(self) -> List[Any]:
        return [t for m in self.registry.all_members() for t in m.transports]

    def _deliver(self, transports: Iterable[Any], lines: List[str]) -> None:
        """Send ``lines`` to each transport.

        Every send is attempted on its own. Failures are logged and the
        transport is left for the connection layer to tear down.
        """
        for transport in transports:
            for line in lines:
                try:
                    transport.send(line)
                except Exception as exc:
                    self.logger.warning(f"[send-failed] transport={transport!r} error={exc}")

    def _close(self, transport: Any, reason: str) -> None:
        try:
            transport.close(reason)
        except Exception as exc:
            self.logger.debug(f"[close-failed] transport={transport!r} error={exc}")

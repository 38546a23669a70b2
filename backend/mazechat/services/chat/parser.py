from typing import List, Optional, Tuple

from mazechat.models import (
    GameAction,
    Help,
    JoinRoom,
    LeaveRoom,
    PlainMessage,
    Rename,
    UnknownCommand,
    Who,
)


def parse(raw: str):
    """Turn one inbound line into a command. Never raises."""
    if raw.startswith('/who'):
        return Who()
    if raw.startswith('/user'):
        # Name validation happens in the registry
        return Rename(raw[len('/user'):].strip())
    if raw.startswith('/help'):
        return Help()
    if raw.startswith('/join'):
        return JoinRoom(raw[len('/join'):].strip())
    if raw.startswith('/part'):
        return LeaveRoom(raw[len('/part'):].strip())
    if raw.startswith('/'):
        return UnknownCommand(raw.split(maxsplit=1)[0])
    if raw.startswith('@'):
        return parse_game_action(raw)
    return PlainMessage(raw)


GAME_ACTION_DELIMITERS = ('@', '#', '->/', ':')


def parse_game_action(raw: str) -> GameAction:
    """Parse ``@<room>#<sender>->/<action>:<message>``.

    Delimiters are located in order, each after the last one found. A field
    whose delimiter is missing is empty; a present field runs up to the next
    delimiter that was found, or to the end of the line. Malformed lines
    degrade to empty fields instead of failing.
    """
    found: List[Optional[Tuple[int, int]]] = []
    pos = 0
    for delimiter in GAME_ACTION_DELIMITERS:
        idx = raw.find(delimiter, pos)
        if idx < 0:
            found.append(None)
            continue
        found.append((idx, idx + len(delimiter)))
        pos = idx + len(delimiter)

    fields = []
    for i, span in enumerate(found):
        if span is None:
            fields.append('')
            continue
        stop = next((s[0] for s in found[i + 1:] if s is not None), len(raw))
        fields.append(raw[span[1]:stop])

    room, sender, action, payload = fields
    return GameAction(room=room.strip(), sender=sender.strip(), action=action, payload=payload)

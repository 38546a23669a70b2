import threading
from typing import Any, Dict, List, Optional, Tuple

from mazechat.models import Member, validate_name


class MemberRegistry:
    """Connected members keyed by identity.

    Each member record has its own lock, so work on different identities
    never contends. ``_index_lock`` only guards inserts, lookups and deletes
    on the identity map and is never held while waiting on a member lock.
    """

    def __init__(self):
        self._members: Dict[str, Member] = {}
        self._index_lock = threading.Lock()

    def _get(self, identity: str) -> Optional[Member]:
        with self._index_lock:
            return self._members.get(identity)

    def join(self, identity: str, transport: Any) -> bool:
        """Attach ``transport`` to ``identity``. Returns True if the member was created."""
        while True:
            with self._index_lock:
                member = self._members.get(identity)
                if member is None:
                    # Published with its first transport already attached
                    self._members[identity] = Member(
                        identity=identity, display_name=identity, transports={transport},
                    )
                    return True
            with member.lock:
                # Lost a race with the last leave of this identity; start over
                if member.removed:
                    continue
                member.transports.add(transport)
                return False

    def leave(self, identity: str, transport: Any) -> Optional[Member]:
        """Detach ``transport``. Returns the removed member once its last transport is gone."""
        member = self._get(identity)
        if member is None:
            return None
        with member.lock:
            if member.removed or transport not in member.transports:
                return None
            member.transports.discard(transport)
            if member.transports:
                return None
            member.removed = True
            gone = member.snapshot()
            with self._index_lock:
                if self._members.get(identity) is member:
                    del self._members[identity]
        return gone

    def rename(self, identity: str, new_name: str) -> Optional[Tuple[str, str]]:
        """Set the display name and return ``(old_name, new_name)``.

        Raises ``EmptyName`` or ``NameTooLong``. Returns None when the
        identity is not joined.
        """
        name = validate_name(new_name)
        member = self._get(identity)
        if member is None:
            return None
        with member.lock:
            if member.removed:
                return None
            old_name = member.display_name
            member.display_name = name
            return old_name, name

    def join_room(self, identity: str, room: str) -> bool:
        member = self._get(identity)
        if member is None:
            return False
        with member.lock:
            if member.removed:
                return False
            member.rooms.add(room)
            return True

    def leave_room(self, identity: str, room: str) -> bool:
        member = self._get(identity)
        if member is None:
            return False
        with member.lock:
            if member.removed or room not in member.rooms:
                return False
            member.rooms.discard(room)
            return True

    def lookup(self, identity: str) -> Optional[Member]:
        member = self._get(identity)
        if member is None:
            return None
        with member.lock:
            return None if member.removed else member.snapshot()

    def all_members(self) -> List[Member]:
        """Snapshots of every joined member, in join order."""
        with self._index_lock:
            members = list(self._members.values())
        snapshots = []
        for member in members:
            with member.lock:
                if not member.removed:
                    snapshots.append(member.snapshot())
        return snapshots

    def members_in_room(self, room: str) -> List[Member]:
        return [m for m in self.all_members() if room in m.rooms]

    def transports_of(self, identity: str) -> List[Any]:
        member = self.lookup(identity)
        return list(member.transports) if member else []

    def clear(self) -> List[Member]:
        """Drop every member and return what was dropped."""
        with self._index_lock:
            members = list(self._members.values())
        dropped = []
        for member in members:
            with member.lock:
                if member.removed:
                    continue
                member.removed = True
                dropped.append(member.snapshot())
                with self._index_lock:
                    if self._members.get(member.identity) is member:
                        del self._members[member.identity]
        return dropped

    def __len__(self):
        with self._index_lock:
            return len(self._members)

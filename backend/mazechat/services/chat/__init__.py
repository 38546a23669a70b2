"""Chat domain services: member registry, command parsing and routing.

These modules know nothing about Flask or Socket.IO. The socket handlers
hand them an identity, a transport (anything with ``send(text)`` and
``close(reason)``) and raw text lines.
"""

from .dispatcher import GameServer
from .parser import parse
from .registry import MemberRegistry

__all__ = ['GameServer', 'MemberRegistry', 'parse']

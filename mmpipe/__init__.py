"""
Public API:
- Channel: point-to-point byte pipe over a chat board (send one transfer, receive completed ones)
- open_channel: factory resolving settings, board and codec
- Board: abstract class chat boards must implement
- MattermostBoard, MemoryBoard: board implementations
- Marker, PostStatus, Stage: post markers and transfer lifecycle
- Post, Reply, Inline, FileBacked: board-level types
- ChannelSettings, load_settings: environment configuration
- ChannelArguments, CAPABILITY: creation arguments and their packed form
- Poller: optional background receive loop
"""

# Core runtime
from .channel import Channel

# Factory & configuration
from .factory import open_channel
from .config import ChannelSettings, load_settings
from .arguments import CAPABILITY, ChannelArguments

# Board contract and implementations
from .transport import Board
from .transports.mattermost import MattermostBoard
from .transports.memory import MemoryBoard

# Board-level types
from .message import (
    FileBacked,
    Inline,
    Marker,
    Post,
    PostStatus,
    Reply,
    Stage,
)

# Codecs & errors
from .codecs import Base64Codec, Codecs
from .errors import ChannelError, DecodeError, SizeViolation, TransportError

from .poller import Poller

__all__ = [
    "Channel",
    "open_channel",
    "ChannelSettings",
    "load_settings",
    "CAPABILITY",
    "ChannelArguments",
    "Board",
    "MattermostBoard",
    "MemoryBoard",
    "FileBacked",
    "Inline",
    "Marker",
    "Post",
    "PostStatus",
    "Reply",
    "Stage",
    "Base64Codec",
    "Codecs",
    "ChannelError",
    "DecodeError",
    "SizeViolation",
    "TransportError",
    "Poller",
]

__version__ = "0.1.0"

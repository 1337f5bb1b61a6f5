from __future__ import annotations
from dataclasses import astuple, dataclass, fields, replace
from typing import Any, Dict, List, Optional
import secrets, string

from .codecs import Codecs
from .config import ChannelSettings
from .errors import DecodeError
from .transports.mattermost import DEFAULT_USER_AGENT

_ALPHABET = string.ascii_lowercase + string.digits

# Creation arguments, in blob order
CAPABILITY: Dict[str, Any] = {
    "create": {
        "arguments": [
            [
                {"type": "string", "name": "Input ID", "min": 4, "randomize": True,
                 "description": "Used to distinguish packets for the channel"},
                {"type": "string", "name": "Output ID", "min": 4, "randomize": True,
                 "description": "Used to distinguish packets from the channel"},
            ],
            {"type": "string", "name": "Mattermost Server URL", "min": 1,
             "description": "Mattermost Server URL starting with schema, without a trailing slash. "
                            "E.g. https://my-mattermost.com"},
            {"type": "string", "name": "Mattermost Team Name", "min": 1,
             "description": "Mattermost Team Name to create a channel within."},
            {"type": "string", "name": "Mattermost Access Token", "min": 1,
             "description": "Mattermost user's Personal Access Token."},
            {"type": "string", "name": "Channel name", "min": 6, "randomize": True,
             "description": "Name of Mattermost's channel used by api"},
            {"type": "string", "name": "User-Agent Header", "min": 1,
             "defaultValue": DEFAULT_USER_AGENT,
             "description": "The User-Agent header to set"},
        ]
    },
    "commands": [],
}

def random_id(length: int = 8) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))

@dataclass(frozen=True)
class ChannelArguments:
    """
    The seven creation arguments of a channel. Both peers hold the same
    arguments with inbound/outbound swapped.
    """
    inbound_id: str
    outbound_id: str
    server_url: str
    team_name: str
    access_token: str
    channel_name: str
    user_agent: str = DEFAULT_USER_AGENT

    @classmethod
    def randomized(cls, server_url: str, team_name: str, access_token: str,
                   channel_name: Optional[str] = None,
                   user_agent: str = DEFAULT_USER_AGENT) -> "ChannelArguments":
        return cls(
            inbound_id=random_id(),
            outbound_id=random_id(),
            server_url=server_url,
            team_name=team_name,
            access_token=access_token,
            channel_name=channel_name or random_id(12),
            user_agent=user_agent,
        )

    def swapped(self) -> "ChannelArguments":
        """Arguments for the peer at the other end."""
        return replace(self, inbound_id=self.outbound_id, outbound_id=self.inbound_id)

    def pack(self) -> bytes:
        return Codecs.get("msgpack").dumps(list(astuple(self)))

    @classmethod
    def unpack(cls, blob: bytes) -> "ChannelArguments":
        items = Codecs.get("msgpack").loads(blob)
        names = [f.name for f in fields(cls)]
        if not isinstance(items, list) or len(items) != len(names) or not all(isinstance(i, str) for i in items):
            raise DecodeError(f"Expected {len(names)} strings in argument blob.")
        return cls(*items)

    def to_settings(self, **extra) -> ChannelSettings:
        return ChannelSettings(**{f.name: getattr(self, f.name) for f in fields(self)}, **extra)

def argument_names() -> List[str]:
    """Flat list of argument names from CAPABILITY, in blob order."""
    names: List[str] = []
    for arg in CAPABILITY["create"]["arguments"]:
        group = arg if isinstance(arg, list) else [arg]
        names.extend(a["name"] for a in group)
    return names

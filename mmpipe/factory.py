
from __future__ import annotations
from typing import Optional, Union

from .arguments import ChannelArguments
from .channel import Channel
from .codecs import Codecs, TextCodec
from .config import ChannelSettings
from .transport import Board

_LIMITS = ("message_limit", "large_payload_threshold")
_BOARD_ONLY = ("inbound_id", "outbound_id") + _LIMITS

def open_channel(settings: Union[ChannelSettings, ChannelArguments, bytes, None] = None,
                 *,
                 board: Union[str, Board] = "mattermost",
                 codec: Union[str, TextCodec] = "base64",
                 **overrides) -> Channel:
    """
    One-liner factory:
      open_channel(load_settings())
      open_channel(ChannelArguments.unpack(blob))
      open_channel(blob, board="mattermost")
      open_channel(board=MemoryBoard(), inbound_id="c2s1", outbound_id="s2c1")

    - settings: ChannelSettings, ChannelArguments, a packed argument blob, or None
      (None with board="mattermost" reads settings from the environment)
    - board: "mattermost" | "memory" | Board instance
    - codec: "base64" | TextCodec instance
    - **overrides: settings fields taking precedence over `settings`
    """
    # Resolve codec
    codec_obj = Codecs.get(codec) if isinstance(codec, str) else codec
    if not all(callable(getattr(codec_obj, a, None)) for a in ("encode", "decode", "max_decoded_size")):
        raise ValueError(f"Not a payload codec: {getattr(codec_obj, 'name', codec_obj)!r}")

    unknown = sorted(set(overrides) - set(ChannelSettings.model_fields))
    if unknown:
        raise ValueError(f"Unknown channel settings: {', '.join(unknown)}")

    label = board.lower() if isinstance(board, str) else None

    # Resolve settings
    resolved: Optional[ChannelSettings] = None
    if isinstance(settings, (bytes, bytearray)):
        settings = ChannelArguments.unpack(bytes(settings))
    if isinstance(settings, ChannelArguments):
        resolved = settings.to_settings(**overrides)
    elif isinstance(settings, ChannelSettings):
        resolved = settings.model_copy(update=overrides) if overrides else settings
    elif label == "mattermost":
        resolved = ChannelSettings(**overrides)

    # Resolve board
    if label is not None:
        if label == "mattermost":
            from .transports.mattermost import MattermostBoard
            b: Board = MattermostBoard(
                resolved.server_url,
                resolved.team_name,
                resolved.access_token,
                resolved.channel_name,
                resolved.user_agent,
                timeout=resolved.request_timeout,
                uploads_per_minute=resolved.uploads_per_minute,
            )
        elif label == "memory":
            from .transports.memory import MemoryBoard
            b = MemoryBoard()
        else:
            raise ValueError(f"Unknown board label: {board}")
    else:
        b = board

    if resolved is None:
        # ids and limits straight from keyword arguments
        unused = sorted(set(overrides) - set(_BOARD_ONLY))
        if unused:
            raise ValueError(f"Settings not usable without a settings object: {', '.join(unused)}")
        missing = [k for k in ("inbound_id", "outbound_id") if k not in overrides]
        if missing:
            raise ValueError(f"Missing channel arguments: {', '.join(missing)}")
        return Channel(b, overrides["inbound_id"], overrides["outbound_id"], codec=codec_obj,
                       **{k: overrides[k] for k in _LIMITS if k in overrides})

    return Channel(
        b,
        resolved.inbound_id,
        resolved.outbound_id,
        codec=codec_obj,
        message_limit=resolved.message_limit,
        large_payload_threshold=resolved.large_payload_threshold,
    )

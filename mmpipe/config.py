"""mmpipe configuration management."""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .channel import LARGE_PAYLOAD_THRESHOLD, MESSAGE_LIMIT
from .message import check_direction
from .transports.mattermost import DEFAULT_USER_AGENT

logger = logging.getLogger("mmpipe.config")


class ChannelSettings(BaseSettings):
    """Settings loaded from environment variables or .env file."""

    # Direction ids, swapped between the two peers
    inbound_id: str = Field(min_length=4, description="Id of posts this side reads")
    outbound_id: str = Field(min_length=4, description="Id of posts this side writes")

    # Mattermost
    server_url: str = Field(description="Server URL with scheme, e.g. https://my-mattermost.com")
    team_name: str = Field(min_length=1, description="Team that holds the channel")
    access_token: str = Field(min_length=1, description="Personal access token")
    channel_name: str = Field(min_length=6, description="Channel used for transfers")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent header")

    # Limits
    message_limit: int = Field(default=MESSAGE_LIMIT, description="Max characters per message body")
    large_payload_threshold: int = Field(
        default=LARGE_PAYLOAD_THRESHOLD,
        description="Payloads of at least this many bytes are sent as one file upload",
    )
    request_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")
    uploads_per_minute: int = Field(default=20, ge=1, description="File upload budget")
    poll_interval: float = Field(default=5.0, gt=0, description="Seconds between receive polls")

    model_config = {"env_prefix": "MMPIPE_", "env_file": ".env", "extra": "ignore"}

    @field_validator("inbound_id", "outbound_id")
    @classmethod
    def _direction(cls, v: str) -> str:
        return check_direction(v)

    @field_validator("server_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        v = v.rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("server_url must start with http:// or https://")
        return v


def load_settings(**overrides) -> ChannelSettings:
    """Load settings from environment, with explicit overrides taking precedence."""
    settings = ChannelSettings(**overrides)

    if not settings.server_url.startswith("https://"):
        logger.warning(f"Server URL {settings.server_url} is not HTTPS; the access token is sent in clear text.")

    return settings

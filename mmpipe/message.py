from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple, Union
from enum import StrEnum

# Status values written into a post body
class PostStatus(StrEnum):
    WRITING = "writing"
    DONE    = "Done"

# Lifecycle of one transfer post
class Stage(StrEnum):
    WRITING    = "writing"     # created, invisible to the peer
    POPULATED  = "populated"   # payload reply attached
    DONE       = "done"        # published
    CONSUMED   = "consumed"    # read and decoded by the peer
    DELETED    = "deleted"

_SEP = ":"

@dataclass(frozen=True)
class Marker:
    """
    Post body marker, rendered as 'direction:status'.
    Direction ids never contain ':' so the rendering is unambiguous.
    """
    direction: str
    status: PostStatus

    def __post_init__(self):
        check_direction(self.direction)

    def __str__(self) -> str:
        return f"{self.direction}{_SEP}{self.status}"

    @classmethod
    def parse(cls, text: str) -> "Marker":
        direction, sep, status = text.rpartition(_SEP)
        if not sep:
            raise ValueError(f"Not a marker: {text!r}")
        try:
            return cls(direction, PostStatus(status))
        except ValueError:
            raise ValueError(f"Not a marker: {text!r}") from None

def check_direction(direction: str) -> str:
    if not direction:
        raise ValueError("Direction id must not be empty.")
    if _SEP in direction:
        raise ValueError(f"Direction id must not contain {_SEP!r}: {direction!r}")
    return direction

@dataclass(frozen=True)
class Inline:
    """Reply content carried in the reply body."""
    text: str

@dataclass(frozen=True)
class FileBacked:
    """Reply content stored in an uploaded file."""
    file_id: str

ReplyContent = Union[Inline, FileBacked]

@dataclass(frozen=True)
class Post:
    id: str
    body: str
    create_at: int = 0           # transport creation time (or sequence)

@dataclass(frozen=True)
class Reply:
    id: str
    body: str
    file_ids: Tuple[str, ...] = ()
    create_at: int = 0

    @property
    def content(self) -> ReplyContent:
        if self.file_ids:
            return FileBacked(self.file_ids[0])
        return Inline(self.body)

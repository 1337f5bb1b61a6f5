from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional

from .message import Post, Reply

PostId  = str
FileRef = str

class Board(ABC):
    """
    Primitive operations of a threaded chat board.
    Implementations raise TransportError for any failed remote call.
    """

    @abstractmethod
    def create_post(self, body: str) -> PostId:
        raise NotImplementedError

    @abstractmethod
    def update_post(self, post_id: PostId, body: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete_post(self, post_id: PostId) -> None:
        raise NotImplementedError

    @abstractmethod
    def create_reply(self, post_id: PostId, body: str, file_id: Optional[FileRef] = None) -> PostId:
        """Append a reply to a post, optionally attaching an uploaded file."""
        raise NotImplementedError

    @abstractmethod
    def list_replies(self, post_id: PostId) -> List[Reply]:
        """Replies of a post, oldest first."""
        raise NotImplementedError

    @abstractmethod
    def delete_reply(self, reply_id: PostId) -> None:
        raise NotImplementedError

    @abstractmethod
    def find_posts(self, body: str) -> List[Post]:
        """Root posts whose body equals `body` exactly, newest first."""
        raise NotImplementedError

    @abstractmethod
    def upload_file(self, data: bytes) -> FileRef:
        raise NotImplementedError

    @abstractmethod
    def fetch_file(self, file_id: FileRef) -> bytes:
        raise NotImplementedError

    def close(self) -> None:
        pass

from __future__ import annotations
import itertools, threading, uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import TransportError
from ..message import Post, Reply
from ..transport import Board, FileRef, PostId

@dataclass
class _Entry:
    id: str
    body: str
    seq: int
    root_id: Optional[str] = None
    file_ids: List[str] = field(default_factory=list)

class MemoryBoard(Board):
    """In-process board. Two channels sharing one instance talk to each other.

    Listing order follows the Mattermost API: root posts newest first,
    thread replies oldest first. Deleting a post does not cascade to its
    replies, so cleanup order is observable in tests.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._seq = itertools.count(1)
        self._entries: Dict[str, _Entry] = {}
        self._files: Dict[str, bytes] = {}
        self._failures: Dict[str, TransportError] = {}
        self.uploads = 0

    def fail_next(self, operation: str, error: Optional[TransportError] = None) -> None:
        """Make the next call of `operation` (a method name) raise."""
        self._failures[operation] = error or TransportError(f"{operation}: injected failure", operation=operation)

    def _check(self, operation: str) -> None:
        err = self._failures.pop(operation, None)
        if err is not None:
            raise err

    def _get(self, entry_id: str, operation: str) -> _Entry:
        try:
            return self._entries[entry_id]
        except KeyError:
            raise TransportError(f"{operation}: not found", operation=operation, status_code=404) from None

    # ---- posts ----
    def create_post(self, body: str) -> PostId:
        self._check("create_post")
        with self._lock:
            e = _Entry(id=uuid.uuid4().hex, body=body, seq=next(self._seq))
            self._entries[e.id] = e
            return e.id

    def update_post(self, post_id: PostId, body: str) -> None:
        self._check("update_post")
        with self._lock:
            self._get(post_id, "update_post").body = body

    def delete_post(self, post_id: PostId) -> None:
        self._check("delete_post")
        with self._lock:
            self._get(post_id, "delete_post")
            del self._entries[post_id]

    def find_posts(self, body: str) -> List[Post]:
        self._check("find_posts")
        with self._lock:
            found = [e for e in self._entries.values() if e.root_id is None and e.body == body]
        found.sort(key=lambda e: e.seq, reverse=True)
        return [Post(id=e.id, body=e.body, create_at=e.seq) for e in found]

    # ---- replies ----
    def create_reply(self, post_id: PostId, body: str, file_id: Optional[FileRef] = None) -> PostId:
        self._check("create_reply")
        with self._lock:
            self._get(post_id, "create_reply")
            if file_id is not None and file_id not in self._files:
                raise TransportError("create_reply: unknown file", operation="create_reply", status_code=400)
            e = _Entry(id=uuid.uuid4().hex, body=body, seq=next(self._seq), root_id=post_id,
                       file_ids=[file_id] if file_id else [])
            self._entries[e.id] = e
            return e.id

    def list_replies(self, post_id: PostId) -> List[Reply]:
        self._check("list_replies")
        with self._lock:
            self._get(post_id, "list_replies")
            replies = [e for e in self._entries.values() if e.root_id == post_id]
        replies.sort(key=lambda e: e.seq)
        return [Reply(id=e.id, body=e.body, file_ids=tuple(e.file_ids), create_at=e.seq) for e in replies]

    def delete_reply(self, reply_id: PostId) -> None:
        self._check("delete_reply")
        with self._lock:
            self._get(reply_id, "delete_reply")
            del self._entries[reply_id]

    # ---- files ----
    def upload_file(self, data: bytes) -> FileRef:
        self._check("upload_file")
        with self._lock:
            file_id = uuid.uuid4().hex
            self._files[file_id] = bytes(data)
            self.uploads += 1
            return file_id

    def fetch_file(self, file_id: FileRef) -> bytes:
        self._check("fetch_file")
        with self._lock:
            try:
                return self._files[file_id]
            except KeyError:
                raise TransportError("fetch_file: not found", operation="fetch_file", status_code=404) from None

    # ---- inspection ----
    def bodies(self) -> List[str]:
        """Bodies of all root posts, oldest first."""
        with self._lock:
            roots = sorted((e for e in self._entries.values() if e.root_id is None), key=lambda e: e.seq)
            return [e.body for e in roots]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

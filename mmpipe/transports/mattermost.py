from __future__ import annotations
import logging
import threading
import time
import uuid
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Optional

import httpx

from ..errors import TransportError, transport_error_from
from ..message import Post, Reply
from ..transport import Board, FileRef, PostId

logger = logging.getLogger("mmpipe.mattermost")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/83.0.4103.97 Safari/537.36"
)

_PAGE_SIZE = 200


class UploadThrottle:
    """Sliding-window limit on file uploads.

    Mattermost allows a small number of uploads per minute per user;
    `acquire()` blocks until the next upload fits in the window.
    """

    def __init__(self, max_uploads: int = 20, window_seconds: float = 60.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.max_uploads = max_uploads
        self.window = window_seconds
        self._clock = clock
        self._sleep = sleep
        self._stamps: Deque[float] = deque()
        self._lock = threading.Lock()

    def acquire(self) -> float:
        """Reserve an upload slot. Returns the seconds spent waiting."""
        waited = 0.0
        with self._lock:
            while True:
                now = self._clock()
                while self._stamps and now - self._stamps[0] >= self.window:
                    self._stamps.popleft()
                if len(self._stamps) < self.max_uploads:
                    self._stamps.append(now)
                    return waited
                delay = self.window - (now - self._stamps[0])
                logger.warning(f"Upload budget used ({self.max_uploads}/{self.window:.0f}s), waiting {delay:.1f}s")
                self._sleep(delay)
                waited += delay


class MattermostBoard(Board):
    """Board over the Mattermost REST API (v4).

    Mapping:
    - post    -> root post in the configured channel
    - reply   -> post with root_id set to the transfer post
    - file    -> uploaded file attached to a reply via file_ids
    - lookup  -> channel posts filtered on the exact message text

    Team and channel ids are resolved on first use; the channel is created
    (private) when it does not exist yet.
    """

    def __init__(self, server_url: str, team_name: str, access_token: str, channel_name: str,
                 user_agent: str = DEFAULT_USER_AGENT, *,
                 timeout: float = 30.0,
                 uploads_per_minute: int = 20,
                 transport: Optional[httpx.BaseTransport] = None):
        self.server_url = server_url.rstrip("/")
        self.team_name = team_name
        self.channel_name = channel_name
        self.team_id: Optional[str] = None
        self.channel_id: Optional[str] = None
        self.throttle = UploadThrottle(max_uploads=uploads_per_minute)
        self._client = httpx.Client(
            base_url=f"{self.server_url}/api/v4",
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {access_token}",
                "User-Agent": user_agent,
            },
            transport=transport,
        )

    # ---- plumbing ----
    def _request(self, operation: str, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = self._client.request(method, path, **kwargs)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            err = transport_error_from(e, operation)
            logger.debug(f"{method} {path} failed: {err}")
            raise err from e
        return resp

    def _json(self, operation: str, method: str, path: str, **kwargs) -> Any:
        resp = self._request(operation, method, path, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise TransportError(f"{operation}: response is not JSON", operation=operation,
                                 status_code=resp.status_code) from e

    def connect(self) -> str:
        """Resolve the team and channel ids, creating the channel if needed."""
        if self.channel_id:
            return self.channel_id

        team = self._json("connect", "GET", f"/teams/name/{self.team_name}")
        self.team_id = team["id"]

        try:
            channel = self._json("connect", "GET", f"/teams/{self.team_id}/channels/name/{self.channel_name}")
        except TransportError as e:
            if e.status_code != 404:
                raise
            channel = self._json("connect", "POST", "/channels", json={
                "team_id": self.team_id,
                "name": self.channel_name,
                "display_name": self.channel_name,
                "type": "P",
            })
            logger.info(f"Created channel {self.channel_name} in team {self.team_name}")

        self.channel_id = channel["id"]
        logger.info(f"Connected to {self.server_url} channel {self.channel_name} ({self.channel_id})")
        return self.channel_id

    def _new_post(self, operation: str, message: str, root_id: str = "",
                  file_ids: Optional[List[str]] = None) -> str:
        body: Dict[str, Any] = {"channel_id": self.connect(), "message": message}
        if root_id:
            body["root_id"] = root_id
        if file_ids:
            body["file_ids"] = file_ids
        return self._json(operation, "POST", "/posts", json=body)["id"]

    # ---- posts ----
    def create_post(self, body: str) -> PostId:
        return self._new_post("create_post", body)

    def update_post(self, post_id: PostId, body: str) -> None:
        self._request("update_post", "PUT", f"/posts/{post_id}/patch", json={"message": body})

    def delete_post(self, post_id: PostId) -> None:
        self._request("delete_post", "DELETE", f"/posts/{post_id}")

    def find_posts(self, body: str) -> List[Post]:
        channel_id = self.connect()
        found: List[Post] = []
        page = 0
        while True:
            data = self._json("find_posts", "GET", f"/channels/{channel_id}/posts",
                              params={"page": page, "per_page": _PAGE_SIZE})
            order = data.get("order") or []
            posts = data.get("posts") or {}
            for pid in order:
                p = posts.get(pid)
                if p and not p.get("root_id") and p.get("message") == body:
                    found.append(Post(id=p["id"], body=p["message"], create_at=int(p.get("create_at", 0))))
            if len(order) < _PAGE_SIZE:
                break
            page += 1
        return found

    # ---- replies ----
    def create_reply(self, post_id: PostId, body: str, file_id: Optional[FileRef] = None) -> PostId:
        return self._new_post("create_reply", body, root_id=post_id,
                              file_ids=[file_id] if file_id else None)

    def list_replies(self, post_id: PostId) -> List[Reply]:
        data = self._json("list_replies", "GET", f"/posts/{post_id}/thread")
        posts = (data.get("posts") or {}).values()
        replies = [p for p in posts if p.get("id") != post_id and p.get("root_id") == post_id]
        replies.sort(key=lambda p: int(p.get("create_at", 0)))
        return [
            Reply(
                id=p["id"],
                body=p.get("message", ""),
                file_ids=tuple(p.get("file_ids") or ()),
                create_at=int(p.get("create_at", 0)),
            )
            for p in replies
        ]

    def delete_reply(self, reply_id: PostId) -> None:
        self._request("delete_reply", "DELETE", f"/posts/{reply_id}")

    # ---- files ----
    def upload_file(self, data: bytes) -> FileRef:
        channel_id = self.connect()
        self.throttle.acquire()
        name = f"{uuid.uuid4().hex}.txt"
        info = self._json("upload_file", "POST", "/files",
                          params={"channel_id": channel_id},
                          files={"files": (name, data, "text/plain")})
        infos = info.get("file_infos") or []
        if not infos:
            raise TransportError("upload_file: no file info in response", operation="upload_file")
        return infos[0]["id"]

    def fetch_file(self, file_id: FileRef) -> bytes:
        return self._request("fetch_file", "GET", f"/files/{file_id}").content

    def close(self) -> None:
        self._client.close()

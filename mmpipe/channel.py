from __future__ import annotations
from typing import List, Optional
import logging

from .codecs import Base64Codec, TextCodec
from .errors import DecodeError, SizeViolation
from .message import FileBacked, Inline, Marker, Post, PostStatus, ReplyContent, Stage, check_direction
from .transport import Board

logger = logging.getLogger("mmpipe.channel")

# Mattermost rejects message bodies longer than this many characters
MESSAGE_LIMIT = 16_383
# Payloads this large go through one file upload instead of a reply
LARGE_PAYLOAD_THRESHOLD = 120_000


class Channel:

    # Notes:
    # - One post per send; body '<out>:writing' until the payload reply exists, then '<out>:Done'
    # - The peer only lists '<in>:Done' posts, so a half-written transfer is never read
    # - Inline sends carry at most one chunk; the caller re-offers the remainder
    # - Nothing is cached between calls; the board is the only state

    def __init__(self, board: Board, inbound_id: str, outbound_id: str, *,
                 codec: Optional[TextCodec] = None,
                 message_limit: int = MESSAGE_LIMIT,
                 large_payload_threshold: int = LARGE_PAYLOAD_THRESHOLD):
        self.board = board
        self.inbound_id = check_direction(inbound_id)
        self.outbound_id = check_direction(outbound_id)
        if self.inbound_id == self.outbound_id:
            raise ValueError("Inbound and outbound ids must differ.")
        self.codec = codec or Base64Codec()
        self.message_limit = message_limit
        self.large_payload_threshold = large_payload_threshold
        self._check_limits()

    @property
    def max_chunk_bytes(self) -> int:
        """Largest raw slice whose encoding fits in one message body."""
        return self.codec.max_decoded_size(self.message_limit)

    def _check_limits(self) -> None:
        if self.max_chunk_bytes < 1:
            raise SizeViolation(
                f"Message limit {self.message_limit} cannot hold one encoded byte "
                f"(needs at least {self.codec.encoded_size(1)} chars).")
        if self.large_payload_threshold < 1:
            raise SizeViolation(f"Large payload threshold must be positive, got {self.large_payload_threshold}.")

    def _marker(self, direction: str, status: PostStatus) -> str:
        return str(Marker(direction, status))

    # ---- outbound ----
    def send(self, payload: bytes) -> int:
        """
        Publish one transfer and return how many bytes of `payload` it carries.
        A short count means the caller must send the remainder again.
        TransportError propagates; the unfinished post stays invisible.
        """
        self._check_limits()
        if not payload:
            return 0

        post_id = self.board.create_post(self._marker(self.outbound_id, PostStatus.WRITING))
        logger.debug(f"post {post_id}: {Stage.WRITING}")

        if len(payload) >= self.large_payload_threshold:
            # file uploads are rate limited by the server, so only big payloads use them
            file_id = self.board.upload_file(self.codec.encode(payload).encode("ascii"))
            content: ReplyContent = FileBacked(file_id)
            sent = len(payload)
        else:
            chunk = payload[:self.max_chunk_bytes]
            content = Inline(self.codec.encode(chunk))
            sent = len(chunk)

        self._attach(post_id, content)
        logger.debug(f"post {post_id}: {Stage.POPULATED} ({sent}/{len(payload)} bytes, {type(content).__name__})")

        self.board.update_post(post_id, self._marker(self.outbound_id, PostStatus.DONE))
        logger.debug(f"post {post_id}: {Stage.DONE}")
        return sent

    def _attach(self, post_id: str, content: ReplyContent) -> None:
        if isinstance(content, FileBacked):
            self.board.create_reply(post_id, "", file_id=content.file_id)
        else:
            self.board.create_reply(post_id, content.text)

    # ---- inbound ----
    def receive(self) -> List[bytes]:
        """
        Read, decode and delete every completed inbound transfer, oldest first.
        Malformed transfers are logged and deleted without being returned.
        A TransportError aborts the whole call, and transfers already
        consumed earlier in the same call are deleted but not returned.
        """
        posts = self.board.find_posts(self._marker(self.inbound_id, PostStatus.DONE))
        # board lists newest first
        ordered = sorted(reversed(posts), key=lambda p: p.create_at)

        out: List[bytes] = []
        for post in ordered:
            data = self._consume(post)
            if data is not None:
                out.append(data)
        return out

    def _consume(self, post: Post) -> Optional[bytes]:
        replies = self.board.list_replies(post.id)

        data: Optional[bytes]
        try:
            data = self.codec.decode("".join(self._resolve(r.content) for r in replies))
        except DecodeError as e:
            logger.warning(f"Dropping malformed transfer {post.id} ({len(replies)} replies): {e}")
            data = None
        else:
            logger.debug(f"post {post.id}: {Stage.CONSUMED} ({len(data)} bytes)")

        # replies first; some boards keep orphaned replies when the root goes away
        for r in replies:
            self.board.delete_reply(r.id)
        self.board.delete_post(post.id)
        logger.debug(f"post {post.id}: {Stage.DELETED}")
        return data

    def _resolve(self, content: ReplyContent) -> str:
        if isinstance(content, FileBacked):
            raw = self.board.fetch_file(content.file_id)
            try:
                return raw.decode("ascii")
            except UnicodeDecodeError as e:
                raise DecodeError(f"File {content.file_id} is not encoded text: {e}") from e
        return content.text

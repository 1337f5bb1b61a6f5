"""Tests for Channel send/receive over an in-memory board."""

import logging
import os

import pytest

from mmpipe import Channel, SizeViolation, TransportError
from mmpipe.channel import LARGE_PAYLOAD_THRESHOLD


# ── Outbound ────────────────────────────────────────────────

class TestSend:
    def test_small_payload_single_reply(self, board, initiator):
        assert initiator.send(b"hello") == 5
        assert board.bodies() == ["c2s1:Done"]
        assert board.uploads == 0

    def test_empty_payload_touches_nothing(self, board, initiator):
        assert initiator.send(b"") == 0
        assert len(board) == 0

    def test_inline_truncates_to_one_chunk(self, board, initiator):
        payload = os.urandom(50_000)
        sent = initiator.send(payload)
        assert sent == initiator.max_chunk_bytes == 12_285
        post_id = board.find_posts("c2s1:Done")[0].id
        replies = board.list_replies(post_id)
        assert len(replies) == 1
        assert len(replies[0].body) <= initiator.message_limit

    def test_below_threshold_never_uploads(self, board, initiator):
        initiator.send(os.urandom(LARGE_PAYLOAD_THRESHOLD - 1))
        assert board.uploads == 0

    def test_at_threshold_uploads(self, board, initiator):
        payload = os.urandom(LARGE_PAYLOAD_THRESHOLD)
        assert initiator.send(payload) == LARGE_PAYLOAD_THRESHOLD
        assert board.uploads == 1

    def test_fresh_post_per_call(self, board, initiator):
        initiator.send(b"a")
        initiator.send(b"b")
        assert board.bodies() == ["c2s1:Done", "c2s1:Done"]

    def test_fragmented_counts(self, small_pair):
        a, _ = small_pair
        assert a.max_chunk_bytes == 300
        payload = os.urandom(1000)
        counts = []
        offset = 0
        while offset < len(payload):
            n = a.send(payload[offset:])
            counts.append(n)
            offset += n
        assert counts == [300, 300, 300, 100]


# ── Inbound ─────────────────────────────────────────────────

class TestReceive:
    def test_round_trip(self, initiator, responder):
        initiator.send(b"\x00\x01binary\xff")
        assert responder.receive() == [b"\x00\x01binary\xff"]

    def test_nothing_pending(self, responder):
        assert responder.receive() == []

    def test_no_redelivery(self, initiator, responder):
        initiator.send(b"once")
        assert responder.receive() == [b"once"]
        assert responder.receive() == []

    def test_own_posts_not_received(self, initiator):
        initiator.send(b"mine")
        assert initiator.receive() == []

    def test_oldest_first(self, initiator, responder):
        initiator.send(b"first")
        initiator.send(b"second")
        initiator.send(b"third")
        assert responder.receive() == [b"first", b"second", b"third"]

    def test_both_directions(self, initiator, responder):
        initiator.send(b"ping")
        responder.send(b"pong")
        assert responder.receive() == [b"ping"]
        assert initiator.receive() == [b"pong"]

    def test_cleanup_removes_everything(self, board, initiator, responder):
        initiator.send(b"x" * 10)
        initiator.send(os.urandom(LARGE_PAYLOAD_THRESHOLD))
        responder.receive()
        assert len(board) == 0

    def test_oversized_transfer(self, board, initiator, responder):
        payload = os.urandom(500_000)
        assert initiator.send(payload) == 500_000
        assert board.uploads == 1
        got = responder.receive()
        assert len(got) == 1
        assert got[0] == payload

    def test_fragmented_transfer(self, small_pair):
        a, b = small_pair
        payload = os.urandom(1000)
        offset = 0
        while offset < len(payload):
            offset += a.send(payload[offset:])
        got = b.receive()
        assert [len(g) for g in got] == [300, 300, 300, 100]
        assert b"".join(got) == payload

    def test_writing_post_invisible(self, board, responder):
        post_id = board.create_post("c2s1:writing")
        board.create_reply(post_id, "aGVsbG8=")
        for _ in range(3):
            assert responder.receive() == []
        assert board.bodies() == ["c2s1:writing"]

    def test_half_written_send_invisible(self, board, initiator, responder):
        board.fail_next("update_post")
        with pytest.raises(TransportError):
            initiator.send(b"lost")
        assert responder.receive() == []
        assert board.bodies() == ["c2s1:writing"]

    def test_multi_reply_post_concatenated(self, board, responder):
        # "hello world" split across replies on 4-char boundaries
        post_id = board.create_post("c2s1:writing")
        for part in ("aGVs", "bG8g", "d29y", "bGQ="):
            board.create_reply(post_id, part)
        board.update_post(post_id, "c2s1:Done")
        assert responder.receive() == [b"hello world"]


# ── Malformed data ──────────────────────────────────────────

class TestMalformed:
    def test_malformed_post_dropped(self, board, initiator, responder, caplog):
        initiator.send(b"good-1")
        bad = board.create_post("c2s1:writing")
        board.create_reply(bad, "!!not base64!!")
        board.update_post(bad, "c2s1:Done")
        initiator.send(b"good-2")

        with caplog.at_level(logging.WARNING, logger="mmpipe.channel"):
            got = responder.receive()

        assert got == [b"good-1", b"good-2"]
        assert "malformed" in caplog.text
        assert len(board) == 0

    def test_non_ascii_file_dropped(self, board, responder):
        file_id = board.upload_file("ünïcode".encode("utf-8"))
        post_id = board.create_post("c2s1:writing")
        board.create_reply(post_id, "", file_id=file_id)
        board.update_post(post_id, "c2s1:Done")
        assert responder.receive() == []
        assert len(board) == 0


# ── Failures & limits ───────────────────────────────────────

class TestFailures:
    @pytest.mark.parametrize("op", ["create_post", "create_reply", "update_post"])
    def test_send_propagates(self, board, initiator, op):
        board.fail_next(op)
        with pytest.raises(TransportError):
            initiator.send(b"data")

    def test_upload_failure_propagates(self, board, initiator):
        board.fail_next("upload_file")
        with pytest.raises(TransportError):
            initiator.send(os.urandom(LARGE_PAYLOAD_THRESHOLD))

    @pytest.mark.parametrize("op", ["find_posts", "list_replies", "fetch_file", "delete_reply", "delete_post"])
    def test_receive_propagates(self, board, initiator, responder, op):
        initiator.send(os.urandom(LARGE_PAYLOAD_THRESHOLD))
        board.fail_next(op)
        with pytest.raises(TransportError):
            responder.receive()

    def test_retry_after_failure(self, board, initiator, responder):
        board.fail_next("create_reply")
        with pytest.raises(TransportError):
            initiator.send(b"retry me")
        assert initiator.send(b"retry me") == 8
        assert responder.receive() == [b"retry me"]

    def test_limit_too_small(self, board):
        with pytest.raises(SizeViolation):
            Channel(board, "aaaa", "bbbb", message_limit=3)

    def test_non_positive_threshold(self, board):
        with pytest.raises(SizeViolation):
            Channel(board, "aaaa", "bbbb", large_payload_threshold=0)

    def test_misconfigured_send_makes_no_calls(self, board, initiator):
        initiator.message_limit = 2
        with pytest.raises(SizeViolation):
            initiator.send(b"data")
        assert len(board) == 0

    def test_same_direction_rejected(self, board):
        with pytest.raises(ValueError):
            Channel(board, "same", "same")

    def test_colon_in_direction_rejected(self, board):
        with pytest.raises(ValueError):
            Channel(board, "in:x", "out1")

    def test_failed_poll_drops_consumed_transfers(self, board, initiator, responder, monkeypatch):
        initiator.send(b"first")
        initiator.send(b"second")
        real_delete = board.delete_post
        deleted = []

        def delete_post(post_id):
            if deleted:
                raise TransportError("delete_post: injected failure", operation="delete_post")
            deleted.append(post_id)
            real_delete(post_id)

        monkeypatch.setattr(board, "delete_post", delete_post)
        with pytest.raises(TransportError):
            responder.receive()
        # "first" was consumed and deleted before the failure; only "second" remains
        assert board.bodies() == ["c2s1:Done"]

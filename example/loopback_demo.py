
import logging

from mmpipe import MemoryBoard, Poller, open_channel

def main():
    # Two peers on one in-memory board; swap the board for
    # open_channel(load_settings()) to run against a Mattermost server
    logging.basicConfig(level=logging.DEBUG)
    board = MemoryBoard()
    A = open_channel(board=board, inbound_id="s2c1", outbound_id="c2s1", message_limit=400)
    B = open_channel(board=board, inbound_id="c2s1", outbound_id="s2c1", message_limit=400)

    # A short message fits in one transfer
    A.send(b"hello over the board")
    print("B got:", B.receive())

    # A longer one is re-offered until every byte is out
    data = bytes(range(256)) * 4
    offset = 0
    while offset < len(data):
        offset += A.send(data[offset:])
    chunks = B.receive()
    print("B got", len(chunks), "chunks, intact:", b"".join(chunks) == data)

    # Background polling on A's side
    P = Poller(A, lambda payload: print("A got:", payload), every_seconds=0.1)
    P.start()
    B.send(b"reply from B")

    import time
    time.sleep(0.5)
    P.stop()

if __name__ == "__main__":
    main()

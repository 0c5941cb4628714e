"""
Tests for mock_daemon.py - the clockboundd stand-in used by the client tests.

The daemon is driven here with plain datagram sockets so its behavior is
checked independently of ClockBoundClient.
"""

import itertools
import os
import queue
import socket
import stat
import unittest

from clockboundc.client import new_socket_path
from clockboundc.mock_daemon import DAEMON_SOCKET_MODE, MockDaemon

RESPONSE = b"\x01\x02\x00\x00\x01"


class TestMockDaemon(unittest.TestCase):
    def setUp(self):
        self.daemon = MockDaemon(RESPONSE)
        self.addCleanup(self.daemon.close)

        self.peer_path = new_socket_path()
        self.peer = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        self.peer.bind(self.peer_path)
        self.peer.settimeout(5.0)
        self.addCleanup(os.remove, self.peer_path)
        self.addCleanup(self.peer.close)

    def _send(self, data: bytes) -> bytes:
        self.peer.sendto(data, self.daemon.socket_path)
        reply, _ = self.peer.recvfrom(64)
        return reply

    def test_socket_is_world_accessible(self):
        st = os.stat(self.daemon.socket_path)
        self.assertTrue(stat.S_ISSOCK(st.st_mode))
        self.assertEqual(stat.S_IMODE(st.st_mode), DAEMON_SOCKET_MODE)

    def test_oversized_request_is_recorded_whole(self):
        data = bytes(range(20))
        self.assertEqual(self._send(data), RESPONSE)
        self.assertEqual(self.daemon.next_request(), data)

    def test_replies_with_canned_response_regardless_of_request(self):
        self.assertEqual(self._send(b"\x01\x01\x00\x00"), RESPONSE)
        self.assertEqual(self._send(b"garbage"), RESPONSE)

    def test_records_requests_in_order(self):
        sent = [b"\x01\x01\x00\x00", b"\x01\x02\x00\x00" + bytes(8), b"\x01\x03\x00\x00" + bytes(8)]
        for data in sent:
            self._send(data)

        received = list(itertools.islice(self.daemon.requests(), len(sent)))
        self.assertEqual(received, sent)

    def test_requests_end_after_close(self):
        self._send(b"\x01\x01\x00\x00")
        self.daemon.close()

        self.assertEqual(list(self.daemon.requests()), [b"\x01\x01\x00\x00"])

    def test_next_request_times_out(self):
        with self.assertRaises(queue.Empty):
            self.daemon.next_request(timeout=0.05)

    def test_close_removes_socket(self):
        self.daemon.close()
        self.assertTrue(self.daemon.closed)
        self.assertFalse(os.path.exists(self.daemon.socket_path))

    def test_close_twice_is_noop(self):
        self.daemon.close()
        self.daemon.close()

    def test_context_manager(self):
        with MockDaemon(RESPONSE) as daemon:
            path = daemon.socket_path
            self.assertTrue(os.path.exists(path))
        self.assertFalse(os.path.exists(path))

    def test_full_queue_blocks_until_drained(self):
        for _ in range(8):
            self._send(b"\x01\x01\x00\x00")

        # The ninth request is received but not answered while the queue is full.
        self.peer.settimeout(0.2)
        self.peer.sendto(b"\x01\x01\x00\x01", self.daemon.socket_path)
        with self.assertRaises(socket.timeout):
            self.peer.recvfrom(64)

        self.daemon.next_request()
        self.peer.settimeout(5.0)
        reply, _ = self.peer.recvfrom(64)
        self.assertEqual(reply, RESPONSE)


if __name__ == "__main__":
    unittest.main()

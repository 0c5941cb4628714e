"""
Tests for timestamp.py - nanosecond instants.
"""

import unittest
from datetime import datetime, timedelta, timezone

from clockboundc.timestamp import Timestamp, as_timestamp


class TestTimestamp(unittest.TestCase):
    """Conversion, formatting and parsing of Timestamp."""

    def test_from_unix_nanos_splits_seconds(self):
        t = Timestamp.from_unix_nanos(1_500_000_000_123)
        self.assertEqual(t.seconds, 1500)
        self.assertEqual(t.nanoseconds, 123)
        self.assertEqual(t.to_unix_nanos(), 1_500_000_000_123)

    def test_nanoseconds_must_be_normalized(self):
        with self.assertRaises(ValueError):
            Timestamp(0, 1_000_000_000)
        with self.assertRaises(ValueError):
            Timestamp(0, -1)

    def test_isoformat_trims_fraction(self):
        self.assertEqual(Timestamp(0).isoformat(), "1970-01-01T00:00:00Z")
        self.assertEqual(Timestamp(0, 500_000_000).isoformat(), "1970-01-01T00:00:00.5Z")
        self.assertEqual(Timestamp(0, 1).isoformat(), "1970-01-01T00:00:00.000000001Z")

    def test_parse_rfc3339(self):
        t = Timestamp.parse("2554-07-21T23:34:33.709551615Z")
        self.assertEqual(t.to_unix_nanos(), 0xFFFF_FFFF_FFFF_FFFF)

    def test_parse_offset(self):
        self.assertEqual(
            Timestamp.parse("2020-01-01T09:00:00+09:00"),
            Timestamp.parse("2020-01-01T00:00:00Z"),
        )
        self.assertEqual(
            Timestamp.parse("2019-12-31T19:30:00.25-04:30"),
            Timestamp.parse("2020-01-01T00:00:00.250Z"),
        )

    def test_parse_nanosecond_integer(self):
        self.assertEqual(Timestamp.parse("1311768467463790320"), Timestamp.from_unix_nanos(0x123456789ABCDEF0))

    def test_parse_invalid(self):
        for text in ("", "yesterday", "2020-01-01", "2020-01-01T00:00:00.1234567891Z", "-5"):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    Timestamp.parse(text)

    def test_parse_roundtrips_isoformat(self):
        t = Timestamp(1_637_318_405, 123_456_789)
        self.assertEqual(Timestamp.parse(t.isoformat()), t)

    def test_from_datetime(self):
        aware = datetime(2021, 1, 1, 0, 0, 0, 250, tzinfo=timezone.utc)
        self.assertEqual(Timestamp.from_datetime(aware), Timestamp(1_609_459_200, 250_000))

        shifted = datetime(2021, 1, 1, 9, 0, 0, tzinfo=timezone(timedelta(hours=9)))
        self.assertEqual(Timestamp.from_datetime(shifted), Timestamp(1_609_459_200))

    def test_naive_datetime_is_utc(self):
        self.assertEqual(
            Timestamp.from_datetime(datetime(2021, 1, 1)),
            Timestamp(1_609_459_200),
        )

    def test_isoformat_pads_early_years(self):
        self.assertTrue(Timestamp(-62_000_000_000).isoformat().startswith("0005-"))

    def test_out_of_datetime_range_raises_value_error(self):
        t = Timestamp.from_unix_nanos(10**30)
        with self.assertRaises(ValueError):
            t.to_datetime()
        with self.assertRaises(ValueError):
            t.isoformat()

    def test_to_datetime_truncates_to_microseconds(self):
        dt = Timestamp(1_609_459_200, 123_456_789).to_datetime()
        self.assertEqual(dt, datetime(2021, 1, 1, 0, 0, 0, 123_456, tzinfo=timezone.utc))

    def test_ordering_and_difference(self):
        a = Timestamp(10, 999_999_999)
        b = Timestamp(11, 0)
        self.assertLess(a, b)
        self.assertEqual(b - a, 1)
        self.assertEqual(a - b, -1)

    def test_now_is_after_2020(self):
        self.assertGreater(Timestamp.now(), Timestamp.parse("2020-01-01T00:00:00Z"))

    def test_as_timestamp(self):
        t = Timestamp(1)
        self.assertIs(as_timestamp(t), t)
        self.assertEqual(as_timestamp(datetime(1970, 1, 1, 0, 0, 1)), t)
        with self.assertRaises(TypeError):
            as_timestamp(1.0)


if __name__ == "__main__":
    unittest.main()

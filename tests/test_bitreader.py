"""Tests for reading typed values from 5-bit groups."""

from datetime import datetime, timezone

import pytest

from invoices import DONATION, WITH_DESCRIPTION_HASH
from ln_invoice.bech32 import decode_bech32
from ln_invoice.bitreader import BitStreamReader, u5_to_bitarray
from ln_invoice.exceptions import TruncatedStreamError
from ln_invoice.tagged_field import TaggedField


def _body(invoice: str) -> bytes:
    payload = decode_bech32(invoice).payload
    return payload[:-104]


class TestBolt11Walkthrough:
    def test_donation_example(self):
        reader = BitStreamReader(_body(DONATION))
        assert reader.read_uint(7) == 1496314658  # timestamp
        assert reader.read_uint(1) == 16  # 's' field
        assert reader.read_uint(2) == 52  # data length
        assert reader.read_bit_aligned_bytes(256).hex() == "11" * 32
        assert reader.read_uint(1) == 1
        assert reader.read_uint(2) == 52
        assert reader.read_bit_aligned_bytes(256).hex() == (
            "0001020304050607080900010203040506070809000102030405060708090102"
        )
        assert reader.read_uint(1) == 13
        assert reader.read_uint(2) == 63
        assert reader.read_text(63) == "Please consider supporting this project"
        assert reader.read_uint(1) == 5
        assert reader.read_uint(2) == 3
        assert reader.read_bit_set(3) == {8, 14}
        assert reader.at_end()

    def test_description_hash_example(self):
        reader = BitStreamReader(_body(WITH_DESCRIPTION_HASH))
        assert reader.read_timestamp(7) == datetime.fromtimestamp(1496314658, tz=timezone.utc)
        assert reader.read_uint(1) == 16
        assert reader.read_uint(2) == 52
        assert reader.read_bit_aligned_bytes(256).hex() == "11" * 32
        assert reader.read_uint(1) == 1
        assert reader.read_uint(2) == 52
        assert reader.read_bit_aligned_bytes(256).hex() == (
            "0001020304050607080900010203040506070809000102030405060708090102"
        )
        assert reader.read_uint(1) == 23  # 'h' field
        assert reader.read_uint(2) == 52
        assert reader.read_bit_aligned_bytes(256).hex() == (
            "3925b6f67e2c340036ed12093dd44e0368df1b6ea26c53dbe4811f58fd5db8c1"
        )
        assert reader.read_uint(1) == 5
        assert reader.read_uint(2) == 3
        assert reader.read_bit_set(3) == {8, 14}

    def test_tagged_fields_consume_whole_body(self):
        fields = BitStreamReader(_body(DONATION)[7:]).read_tagged_fields()
        assert [(f.tag, f.size) for f in fields] == [(16, 52), (1, 52), (13, 63), (5, 3)]
        assert all(len(f.data) == f.size for f in fields)


class TestBitAlignedBytes:
    def test_uneven_bytes_drop_trailing_bits(self):
        payload = decode_bech32("lnurl1xyerxdu27jy").payload
        assert BitStreamReader(payload).read_bit_aligned_bytes(24) == b"123"

    def test_partial_byte_is_zero_padded_on_the_right(self):
        # 0b11111 0b10000 -> first 10 bits 1111110000 -> 0xfc, 0x00
        assert BitStreamReader(bytes([31, 16])).read_bit_aligned_bytes(10) == bytes([0xFC, 0x00])

    def test_consumes_ceiling_of_groups(self):
        reader = BitStreamReader(bytes([1, 2, 3]))
        reader.read_bit_aligned_bytes(6)
        assert reader.remaining == 1

    def test_text_rounds_down_to_whole_bytes(self):
        # 4 groups = 20 bits -> 16 bits of text, the last 4 are discarded
        groups = [int(b, 2) for b in ("01101", "00001", "10100", "11111")]
        assert BitStreamReader(bytes(groups)).read_text(4) == "hi"


class TestIntegers:
    def test_fold_left_to_right(self):
        assert BitStreamReader(bytes([1, 0])).read_uint(2) == 32

    def test_zero_groups(self):
        assert BitStreamReader(b"").read_uint(0) == 0

    def test_bit_set_wider_than_a_machine_word(self):
        groups = bytes([16] + [0] * 19)
        assert BitStreamReader(groups).read_bit_set(20) == {99}

    def test_u5_to_bitarray(self):
        assert u5_to_bitarray(bytes([1, 31])).bin == "0000111111"


class TestTruncation:
    def test_read_past_end_raises(self):
        reader = BitStreamReader(bytes([1, 2]))
        with pytest.raises(TruncatedStreamError) as exc_info:
            reader.read_uint(3)
        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2

    def test_partial_tagged_field_raises(self):
        # tag 1, declared length 4, only 2 data groups present
        reader = BitStreamReader(bytes([1, 0, 4, 7, 7]))
        with pytest.raises(TruncatedStreamError):
            reader.read_tagged_fields()

    def test_complete_tagged_field(self):
        reader = BitStreamReader(bytes([6, 0, 3, 2, 14, 24]))
        assert reader.read_tagged_fields() == [TaggedField(6, 3, bytes([2, 14, 24]))]

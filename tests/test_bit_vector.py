import struct

import pytest

from bit_vector import BitVector
from huffman_errors import BitIndexError, BitVectorUnderflowError, HuffmanError


def _pattern(n):
	return [(i * 7 + i // 3) % 5 < 2 for i in range(n)]


def test_new_vector_is_empty():
	bits = BitVector()
	assert len(bits) == 0
	assert bits.to_bytes() == b""
	assert list(bits) == []


def test_append_grows_backing_byte_every_eight_bits():
	bits = BitVector()
	for i in range(8):
		bits.append(True)
		assert len(bits) == i + 1
		assert len(bits.to_bytes()) == 1
	bits.append(False)
	assert len(bits) == 9
	assert len(bits.to_bytes()) == 2


def test_bits_are_packed_most_significant_first():
	bits = BitVector.from_string("1000 0001 1")
	assert bits.to_bytes() == bytes([0x81, 0x80])
	assert bits.get(0) is True
	assert bits.get(1) is False
	assert bits.get(8) is True


def test_get_out_of_range():
	bits = BitVector.from_string("101")
	with pytest.raises(BitIndexError) as excinfo:
		bits.get(3)
	assert excinfo.value.index == 3
	assert excinfo.value.size == 3
	with pytest.raises(IndexError):
		BitVector().get(0)
	with pytest.raises(HuffmanError):
		bits.get(-1)


def test_set_overwrites_and_returns_value():
	bits = BitVector.from_string("0000 0000 00")
	assert bits.set(9, True) is True
	assert bits.set(0, True) is True
	assert str(bits) == "1000 0000 01"
	assert bits.set(0, False) is False
	assert str(bits) == "0000 0000 01"


def test_set_cannot_extend():
	bits = BitVector.from_string("11")
	with pytest.raises(BitIndexError):
		bits.set(2, True)
	assert len(bits) == 2


def test_pop_back_releases_emptied_byte():
	bits = BitVector.from_string("1111 0000 1")
	assert len(bits.to_bytes()) == 2
	assert bits.pop_back() is True
	assert len(bits) == 8
	assert len(bits.to_bytes()) == 1
	assert bits.pop_back() is False
	assert len(bits.to_bytes()) == 1
	assert str(bits) == "1111 000"


def test_pop_back_to_empty_then_underflow():
	bits = BitVector.from_string("10")
	bits.pop_back()
	bits.pop_back()
	assert len(bits) == 0
	assert bits.to_bytes() == b""
	with pytest.raises(BitVectorUnderflowError):
		bits.pop_back()


def test_append_after_pop_does_not_leak_old_bits():
	bits = BitVector.from_string("1111 1111 1")
	bits.pop_back()
	bits.pop_back()
	bits.append(False)
	assert str(bits) == "1111 1110 "


def test_extend_concatenates_in_order():
	left = BitVector.from_string("101")
	right = BitVector.from_string("0011 1")
	left.extend(right)
	assert str(left) == "1010 0111 "
	assert str(right) == "0011 1"


def test_append_accepts_a_bit_vector():
	bits = BitVector.from_string("1")
	bits.append(BitVector.from_string("0000 0001"))
	assert len(bits) == 9
	assert bits.to_bytes() == bytes([0x80, 0x80])


def test_extend_with_itself_doubles():
	bits = BitVector.from_string("110")
	bits.extend(bits)
	assert str(bits) == "1101 10"


def test_clear():
	bits = BitVector.from_string("1010 1")
	bits.clear()
	assert len(bits) == 0
	assert bits.to_bytes() == b""


def test_copy_is_independent():
	bits = BitVector.from_string("10")
	dup = bits.copy()
	dup.append(True)
	dup.set(0, False)
	assert str(bits) == "10"
	assert str(dup) == "001"


def test_equality_ignores_padding_bits():
	assert BitVector.from_bytes(b"\xff", 1) == BitVector.from_bytes(b"\x80", 1)
	assert BitVector.from_bytes(b"\xff", 2) != BitVector.from_bytes(b"\x80", 2)
	assert BitVector.from_string("1") != BitVector.from_string("10")
	assert BitVector() == BitVector()


def test_from_bytes_requires_matching_length():
	with pytest.raises(ValueError):
		BitVector.from_bytes(b"\x00", 9)
	with pytest.raises(ValueError):
		BitVector.from_bytes(b"\x00\x00", 8)


def test_from_string_rejects_other_characters():
	with pytest.raises(ValueError):
		BitVector.from_string("10x1")


def test_text_form_groups_by_four():
	assert str(BitVector.from_string("101101")) == "1011 01"
	assert repr(BitVector.from_string("1011")) == "BitVector('1011')"


def test_as_int():
	assert BitVector.from_string("101").as_int() == 5
	assert BitVector.from_string("0001").as_int() == 1
	assert BitVector().as_int() == 0


def test_serialize_layout():
	bits = BitVector.from_string("1011 0")
	assert bits.serialize() == struct.pack("<I", 5) + bytes([0b10110000])
	assert bits.serialized_size() == 5
	assert BitVector().serialize() == b"\x00\x00\x00\x00"


def test_deserialize_round_trip_all_lengths():
	for n in range(0, 41):
		bits = BitVector(_pattern(n))
		restored = BitVector()
		assert restored.deserialize(bits.serialize())
		assert restored == bits
		assert list(restored) == _pattern(n)


def test_deserialize_ignores_trailing_bytes():
	bits = BitVector.from_string("111")
	restored = BitVector()
	assert restored.deserialize(bits.serialize() + b"garbage")
	assert restored == bits


def test_deserialize_short_header_clears_state():
	bits = BitVector.from_string("1111")
	assert bits.deserialize(b"\x01\x00\x00") is False
	assert len(bits) == 0


def test_deserialize_short_payload_clears_state():
	bits = BitVector.from_string("1111")
	assert bits.deserialize(struct.pack("<I", 9) + b"\xff") is False
	assert len(bits) == 0
	assert bits.to_bytes() == b""

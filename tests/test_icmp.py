import pytest

from host_watch.icmp.checksum import checksum
from host_watch.icmp.echo import EchoPacket, build_echo_request


def test_checksum_of_zeroed_echo_header() -> None:
    assert checksum(bytes([8, 0, 0, 0, 0, 0, 0, 0])) == 0xF7FF


def test_checksum_rfc1071_example() -> None:
    # RFC 1071 section 3: sum of these words folds to 0xddf2.
    assert checksum(bytes.fromhex("0001f203f4f5f6f7")) == 0x220D


def test_checksum_odd_length_adds_last_byte_as_own_term() -> None:
    assert checksum(b"\x01") == 0xFFFE
    assert checksum(b"\x08\x00\x01") == checksum(b"\x08\x01")


def test_checksum_empty() -> None:
    assert checksum(b"") == 0xFFFF


def test_build_echo_request_wire_format() -> None:
    assert build_echo_request() == bytes.fromhex("0800f7ff00000000")


def test_checksum_round_trip_law() -> None:
    wire = build_echo_request(identifier=0x1234, sequence=1)
    pkt = EchoPacket.decode(wire)
    assert pkt.type == 8 and pkt.code == 0
    assert (pkt.identifier, pkt.sequence) == (0x1234, 1)

    # Recomputing with the checksum zeroed again reproduces the same value.
    assert pkt.with_checksum() == pkt
    # A correct header sums to zero.
    assert checksum(wire) == 0


def test_decode_rejects_short_input() -> None:
    with pytest.raises(ValueError):
        EchoPacket.decode(b"\x08\x00\x00")

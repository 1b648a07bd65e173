import struct

import pytest

from ipcbench.netlink import (
    NLMSG_ALIGNTO,
    NLMSG_HDRLEN,
    NetlinkHeader,
    build_message,
    message_text,
    nlmsg_align,
    nlmsg_space,
    parse_message,
)


@pytest.mark.parametrize("length", range(0, 40))
def test_align_is_smallest_multiple(length):
    aligned = nlmsg_align(length)
    assert aligned % NLMSG_ALIGNTO == 0
    assert length <= aligned < length + NLMSG_ALIGNTO


def test_align_rejects_negative():
    with pytest.raises(ValueError):
        nlmsg_align(-1)


def test_space_for_buffer_size():
    assert nlmsg_space(1024) == 1040


def test_space_of_empty_payload_is_header():
    assert nlmsg_space(0) == NLMSG_HDRLEN


def test_header_round_trip():
    header = NetlinkHeader(length=64, msg_type=3, flags=5, seq=9, pid=1234)
    assert NetlinkHeader.unpack(header.pack()) == header


def test_header_unpack_too_short():
    with pytest.raises(ValueError):
        NetlinkHeader.unpack(b"\0" * 4)


def test_build_pads_to_requested_length():
    data = build_message("Test message", pid=42, total_length=nlmsg_space(1024))
    assert len(data) == nlmsg_space(1024)
    declared = struct.unpack_from("=I", data)[0]
    assert declared == len(data)


def test_build_parse_round_trip():
    data = build_message("Test message", pid=42, total_length=nlmsg_space(1024))
    message = parse_message(data)
    assert message.header.pid == 42
    assert message.header.length == len(data)
    assert message.text == "Test message"
    assert len(message.payload) == len(data) - NLMSG_HDRLEN


def test_message_to_bytes_reproduces_input():
    data = build_message(b"\x01\x02\x03", pid=7)
    assert parse_message(data).to_bytes() == data


def test_default_length_is_aligned_space():
    data = build_message(b"abcde", pid=1)
    assert len(data) == nlmsg_space(5)


def test_build_rejects_oversized_payload():
    with pytest.raises(ValueError):
        build_message(b"x" * 100, pid=1, total_length=nlmsg_space(10))


def test_parse_rejects_short_data():
    with pytest.raises(ValueError):
        parse_message(b"\0" * 3)


def test_parse_rejects_length_beyond_data():
    data = build_message(b"abcd", pid=1)
    with pytest.raises(ValueError):
        parse_message(data[:-4])


def test_parse_rejects_length_below_header():
    data = NetlinkHeader(length=4).pack()
    with pytest.raises(ValueError):
        parse_message(data)


def test_message_text_stops_at_nul():
    assert message_text(b"abc\0def") == "abc"


def test_message_text_without_nul():
    assert message_text(b"hello") == "hello"
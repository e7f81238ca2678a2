from __future__ import annotations

import struct
from dataclasses import dataclass, replace

from host_watch.icmp.checksum import checksum

ICMP_ECHO_REQUEST = 8
ICMP_ECHO_REPLY = 0

_HEADER = struct.Struct("!BBHHH")
HEADER_SIZE = _HEADER.size


@dataclass(frozen=True)
class EchoPacket:
    type: int = ICMP_ECHO_REQUEST
    code: int = 0
    checksum: int = 0
    identifier: int = 0
    sequence: int = 0

    def encode(self) -> bytes:
        return _HEADER.pack(self.type, self.code, self.checksum, self.identifier, self.sequence)

    def with_checksum(self) -> "EchoPacket":
        """
        Return a copy carrying the checksum of this header.
        The sum is always taken over the encoding with the checksum field zeroed.
        """
        zeroed = replace(self, checksum=0)
        return replace(self, checksum=checksum(zeroed.encode()))

    @classmethod
    def decode(cls, data: bytes) -> "EchoPacket":
        if len(data) < HEADER_SIZE:
            raise ValueError("icmp header needs %d bytes, got %d" % (HEADER_SIZE, len(data)))
        typ, code, csum, ident, seq = _HEADER.unpack_from(data)
        return cls(type=typ, code=code, checksum=csum, identifier=ident, sequence=seq)


def build_echo_request(identifier: int = 0, sequence: int = 0) -> bytes:
    # identifier/sequence stay fixed for the process lifetime; replies are not matched against them.
    packet = EchoPacket(identifier=identifier, sequence=sequence).with_checksum()
    return packet.encode()

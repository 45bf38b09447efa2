from collections.abc import Iterator
from contextlib import contextmanager
import io
import pathlib
import struct
from typing import IO, TYPE_CHECKING, NamedTuple

from pakal.archive import BaseArchive, make_opener

if TYPE_CHECKING:
    from pakal.archive import ArchiveIndex


ADRN_ENTRY = struct.Struct('<3I2i2I3B45sI')
REAL_HEADER = struct.Struct('<2s2B3I')


class AdrnEntry(NamedTuple):
    id: int
    address: int
    size: int
    x: int
    y: int
    width: int
    height: int
    east: int
    south: int
    path: int
    name: str
    map: int


class RealBlock(NamedTuple):
    magic: bytes
    major: int
    minor: int
    width: int
    height: int
    size: int
    data: bytes


def read_adrn_index(stream: IO[bytes]) -> Iterator[tuple[str, AdrnEntry]]:
    while True:
        record = stream.read(ADRN_ENTRY.size)
        if len(record) < ADRN_ENTRY.size:
            break
        *fields, name, map_id = ADRN_ENTRY.unpack(record)
        entry = AdrnEntry(*fields, name.split(b'\0', 1)[0].decode('ascii', errors='replace'), map_id)
        yield str(entry.id), entry


def read_real_block(stream: IO[bytes], address: int, size: int) -> RealBlock:
    stream.seek(address)
    header = stream.read(REAL_HEADER.size)
    magic, major, minor, width, height, block_size = REAL_HEADER.unpack(header)
    data = stream.read(max(size - REAL_HEADER.size, 0))
    return RealBlock(magic, major, minor, width, height, block_size, data)


class SaArchive(BaseArchive[AdrnEntry]):
    """Stone Age graphics: pixel blocks in Real, their index in Adrn."""

    def _create_index(self) -> 'ArchiveIndex[AdrnEntry]':
        if not self._filename:
            raise ValueError('Must open via filename')
        real = pathlib.Path(self._filename)
        adrn = real.with_name(real.name.replace('Real', 'Adrn'))
        with adrn.open('rb') as adrn_handle:
            return dict(read_adrn_index(adrn_handle))

    @contextmanager
    def _read_entry(self, entry: AdrnEntry) -> Iterator[IO[bytes]]:
        yield io.BytesIO(self.get_real_block(entry.address, entry.size).data)

    def get_adrn_block(self, id: int) -> AdrnEntry:
        return self.index[str(id)]

    def get_real_block(self, address: int, size: int) -> RealBlock:
        return read_real_block(self._stream, address, size)


open = make_opener(SaArchive)

if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser()
    parser.add_argument('fname', help='Path to the Real graphics file')
    args = parser.parse_args()

    with open(pathlib.Path(args.fname)) as arc:
        arc.extractall('extracted')

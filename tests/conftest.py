import pytest

from archive import ADRN_ENTRY, REAL_HEADER, AdrnEntry, RealBlock
from settings import Settings


class FakeArchive:
    def __init__(self, blocks):
        self.blocks = blocks
        self.adrn_calls = 0
        self.real_calls = 0

    def get_adrn_block(self, id):
        self.adrn_calls += 1
        adrn, _ = self.blocks[id]
        return adrn

    def get_real_block(self, address, size):
        self.real_calls += 1
        for adrn, real in self.blocks.values():
            if (adrn.address, adrn.size) == (address, size):
                return real
        raise KeyError(address)


def make_block(id, address, width, height, major, data, x=0, y=0):
    adrn = AdrnEntry(id, address, REAL_HEADER.size + len(data), x, y, width, height, 0, 0, 0, f'tex{id}', 0)
    real = RealBlock(b'RD', major, 0, width, height, REAL_HEADER.size + len(data), data)
    return adrn, real


@pytest.fixture
def fake_archive():
    return FakeArchive({
        7: make_block(7, 0, 4, 2, 1, bytes([130, 0x7F, 130, 0x00])),
        8: make_block(8, 100, 2, 3, 0, b'abcdef', x=-2, y=9),
    })


@pytest.fixture
def settings(tmp_path):
    return Settings(tmp_path / 'out')


def write_archive(directory, blocks):
    """Lay out `blocks` as a Real/Adrn file pair, ignoring their addresses."""
    real = bytearray()
    adrn = bytearray()
    for entry, block in blocks:
        address = len(real)
        size = REAL_HEADER.size + len(block.data)
        real += REAL_HEADER.pack(block.magic, block.major, block.minor, block.width, block.height, size)
        real += block.data
        adrn += ADRN_ENTRY.pack(
            entry.id, address, size, entry.x, entry.y, entry.width, entry.height,
            entry.east, entry.south, entry.path, entry.name.encode('ascii'), entry.map,
        )
    (directory / 'Real_1.bin').write_bytes(bytes(real))
    (directory / 'Adrn_1.bin').write_bytes(bytes(adrn))
    return directory / 'Real_1.bin'


@pytest.fixture
def archive_file(tmp_path):
    blocks = [
        make_block(0, 0, 4, 2, 1, bytes([130, 0x7F, 130, 0x00])),
        make_block(1, 0, 2, 2, 0, b'abcd', x=-5, y=3),
    ]
    return write_archive(tmp_path, blocks)



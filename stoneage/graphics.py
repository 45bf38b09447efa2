from dataclasses import dataclass, field
import struct

import numpy as np
from PIL import Image

from rle import decode_run_length


RECORD_HEADER = struct.Struct('>iiIII')

GRAYSCALE = [v for v in range(256) for _ in range(3)]


@dataclass(frozen=True)
class Texture:
    x: int
    y: int
    width: int
    height: int
    bitmap: bytes = field(repr=False)

    def check(self):
        if len(self.bitmap) != self.width * self.height:
            raise ValueError(
                f'Bitmap holds {len(self.bitmap)} bytes, expected {self.width}x{self.height}'
            )


def flip_vertical(data, width, height):
    """Reverse the row order of a row-major `bytearray` in place."""
    buf = bytearray(width)
    for i in range(height // 2):
        top = i * width
        bottom = (height - i - 1) * width
        # a short buffer only swaps the part of each row it actually holds
        count = min(width, max(len(data) - bottom, 0))
        buf[:count] = data[top:top + count]
        data[top:top + count] = data[bottom:bottom + count]
        data[bottom:bottom + count] = buf[:count]


def create_texture(adrn, real):
    if real.major == 1:
        buf = decode_run_length(real.data, adrn.width * adrn.height)
    else:
        buf = bytearray(real.data)
    flip_vertical(buf, adrn.width, adrn.height)
    return Texture(adrn.x, adrn.y, adrn.width, adrn.height, bytes(buf))


def pack_texture(texture):
    header = RECORD_HEADER.pack(
        texture.x,
        texture.y,
        texture.width,
        texture.height,
        len(texture.bitmap),
    )
    return header + texture.bitmap


def unpack_texture(data):
    if len(data) < RECORD_HEADER.size:
        raise ValueError(f'Texture record too short: {len(data)} bytes')
    x, y, width, height, size = RECORD_HEADER.unpack(data[:RECORD_HEADER.size])
    bitmap = data[RECORD_HEADER.size:]
    if len(bitmap) != size:
        raise ValueError(f'Texture record holds {len(bitmap)} bitmap bytes, expected {size}')
    return Texture(x, y, width, height, bytes(bitmap))


def to_image(texture, palette=None):
    """Render a texture as a palette image with top-down rows.

    Bitmaps are stored bottom-up, so rows are flipped back on the way out.
    """
    texture.check()
    rows = np.frombuffer(texture.bitmap, dtype=np.uint8).reshape(texture.height, texture.width)
    size = (texture.width, texture.height)
    im = Image.frombuffer('P', size, rows[::-1].tobytes(), 'raw', 'P', 0, 1)
    im.putpalette(palette if palette is not None else GRAYSCALE)
    return im

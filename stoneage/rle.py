import enum
import io
from typing import NamedTuple


class RunMode(enum.Enum):
    ZERO = 'zero'  # fill with implicit 0
    FILL = 'fill'  # fill with the byte following the header
    COPY = 'copy'  # literal bytes follow the run length


class Opcode(NamedTuple):
    first: int
    mode: RunMode
    width: int  # bytes of run length, header included


OPCODES = (
    Opcode(224, RunMode.ZERO, 3),
    Opcode(208, RunMode.ZERO, 2),
    Opcode(192, RunMode.ZERO, 1),
    Opcode(160, RunMode.FILL, 3),
    Opcode(144, RunMode.FILL, 2),
    Opcode(128, RunMode.FILL, 1),
    Opcode(32, RunMode.COPY, 3),
    Opcode(16, RunMode.COPY, 2),
    Opcode(0, RunMode.COPY, 1),
)

OPCODE_TABLE = tuple(
    next(op for op in OPCODES if head >= op.first) for head in range(256)
)


def read_run(stream, head):
    """Parse the rest of a record started by `head`.

    Returns (mode, fill value, run length), or None when the input ends
    inside the record.
    """
    op = OPCODE_TABLE[head]
    value = 0
    if op.mode == RunMode.FILL:
        fill = stream.read(1)
        if not fill:
            return None
        value = fill[0]
    extra = stream.read(op.width - 1)
    if len(extra) < op.width - 1:
        return None
    total = head - op.first
    for byte in extra:
        total = (total << 8) | byte
    return op.mode, value, total


def decode_run_length(data, size):
    dst = bytearray(size)
    dstpos = 0

    with io.BytesIO(data) as stream:
        while dstpos < size:
            head = stream.read(1)
            if not head:
                break
            run = read_run(stream, head[0])
            if run is None:
                break
            mode, value, total = run
            total = min(total, size - dstpos)
            if mode == RunMode.COPY:
                literal = stream.read(total)
                dst[dstpos:dstpos + len(literal)] = literal
                dstpos += len(literal)
            else:
                dst[dstpos:dstpos + total] = bytes([value]) * total
                dstpos += total
    return dst

"""Calldata compression compatible with Solady ``LibZip.cdCompress``.

ABI encoded calldata is mostly runs of ``0x00`` (padding) and ``0xff``
(negative numbers, max approvals). The format replaces such runs with two bytes:

- ``0x00, n - 1`` for ``n`` zero bytes, ``1 <= n <= 128``

- ``0x00, 0x80 | (n - 1)`` for ``n`` ``0xff`` bytes, ``1 <= n <= 32``

Other bytes are copied as is. Finally the first four output bytes are bitwise
negated, so that a compressed function selector never collides with a real one.

The on-chain side decompresses with ``LibZip.cdDecompress`` or the ``cdFallback``
of the receiving contract, so the output must match Solady bit for bit.

- `Solady LibZip <https://github.com/Vectorized/solady/blob/main/src/utils/LibZip.sol>`__
"""

from hexbytes import HexBytes

#: Longest zero run one marker can carry
MAX_ZERO_RUN = 0x80

#: Longest ``0xff`` run one marker can carry
MAX_FF_RUN = 0x20

#: Number of leading bytes negated in the compressed stream
NEGATED_PREFIX_LENGTH = 4


def _negate_prefix(data: bytearray):
    for i in range(min(NEGATED_PREFIX_LENGTH, len(data))):
        data[i] ^= 0xFF


def cd_compress(data: bytes | str) -> HexBytes:
    """Compress calldata.

    Example:

    .. code-block:: python

        # transfer(address,uint256) selector followed by a padded address
        compressed = cd_compress("0xa9059cbb" + "00" * 12 + "11" * 20)
        assert compressed.hex() == "56fa6344" + "000b" + "11" * 20

    :param data:
        Calldata as bytes or hex

    :return:
        Compressed calldata
    """
    out = bytearray()
    zeros = 0
    ffs = 0

    def flush_zeros():
        nonlocal zeros
        if zeros:
            out.extend((0x00, zeros - 1))
            zeros = 0

    def flush_ffs():
        nonlocal ffs
        if ffs:
            out.extend((0x00, 0x80 | (ffs - 1)))
            ffs = 0

    for c in HexBytes(data):
        if c == 0x00:
            flush_ffs()
            zeros += 1
            if zeros == MAX_ZERO_RUN:
                flush_zeros()
        elif c == 0xFF:
            flush_zeros()
            ffs += 1
            if ffs == MAX_FF_RUN:
                flush_ffs()
        else:
            flush_ffs()
            flush_zeros()
            out.append(c)

    flush_ffs()
    flush_zeros()
    _negate_prefix(out)
    return HexBytes(bytes(out))


def cd_decompress(data: bytes | str) -> HexBytes:
    """Reverse :py:func:`cd_compress`.

    :raise ValueError:
        A run marker is truncated
    """
    src = bytearray(HexBytes(data))
    _negate_prefix(src)

    out = bytearray()
    i = 0
    while i < len(src):
        c = src[i]
        if c == 0x00:
            if i + 1 >= len(src):
                raise ValueError(f"Truncated run marker at offset {i}")
            d = src[i + 1]
            fill = 0xFF if d & 0x80 else 0x00
            out.extend(bytes([fill]) * ((d & 0x7F) + 1))
            i += 2
        else:
            out.append(c)
            i += 1
    return HexBytes(bytes(out))

# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Raw binary format.

A flat image of bytes at consecutive addresses, carrying no addressing
information: the load address is supplied by the caller when reading, and
holes are filled with a byte value when writing.
"""

from typing import IO
from typing import Optional
from typing import Sequence
from typing import Union

from ..base import AnySource
from ..base import BaseFile
from ..errors import AddressOverflowError
from ..errors import EmptyRangeError
from ..space import ADDRESS_MAX
from ..space import ADDRESS_MIN
from ..space import AddressSpace
from ..space import AnyBytes
from ..space import as_space


def _check_fill(fill: int) -> int:

    fill = fill.__index__()
    if not 0 <= fill <= 0xFF:
        raise ValueError('invalid fill byte')
    return fill


def write_bin(
    source: AnySource,
    start: Optional[int] = None,
    endex: Optional[int] = None,
    fill: int = 0xFF,
) -> bytes:
    r"""Writes a dense binary image.

    Args:
        source (:class:`AddressSpace` or :class:`BaseFile`):
            Address space to write.

        start (int):
            Inclusive start address of the image.
            If ``None``, the lowest address holding data.

        endex (int):
            Exclusive end address of the image.
            If ``None``, right after the highest address holding data.

        fill (int):
            Byte value for addresses holding no data.

    Returns:
        bytes: Binary image of ``endex - start`` bytes.

    Raises:
        :class:`EmptyRangeError`: Empty space and missing range bounds.
        ValueError: Inverted range, or invalid `fill`.

    Examples:
        >>> from hexspace import AddressSpace
        >>> from hexspace.formats.raw import write_bin
        >>> space = AddressSpace.from_items({0: 0x01, 3: 0x02})
        >>> write_bin(space)
        b'\x01\xff\xff\x02'
        >>> write_bin(space, start=2, endex=6, fill=0)
        b'\x00\x02\x00\x00'
    """

    space = as_space(source)
    fill = _check_fill(fill)
    span = space.address_range()

    if start is None or endex is None:
        if span is None:
            raise EmptyRangeError()
        if start is None:
            start = span[0]
        if endex is None:
            endex = span[1] + 1

    start = start.__index__()
    endex = endex.__index__()
    if start > endex:
        raise ValueError('start address after end address')

    buffer = bytearray((fill,)) * (endex - start)
    for block_start, block_view in space.memory.blocks(start, endex):
        offset = block_start - start
        buffer[offset:(offset + len(block_view))] = block_view
    return bytes(buffer)


class RawFile(BaseFile):
    r"""Raw binary file object.

    Examples:
        >>> from hexspace import RawFile
        >>> file = RawFile.parse(b'abc', address=0x1000)
        >>> file.space.to_blocks()
        [(4096, b'abc')]
        >>> _ = file.space.set(0x1005, ord('z'))
        >>> file.to_bytes()
        b'abc\xff\xffz'
    """

    DEFAULT_FILL: int = 0xFF
    r"""Default byte value filling holes."""

    FILE_EXT: Sequence[str] = [
        '.bin', '.dat', '.raw',
    ]

    FLAT: bool = True

    META_KEYS: Sequence[str] = [
        'fill',
    ]

    def __init__(self):

        super().__init__()

        self._fill: int = self.DEFAULT_FILL

    @property
    def fill(self) -> int:
        r"""int: Byte value filling holes when serializing."""

        return self._fill

    @fill.setter
    def fill(self, fill: int) -> None:

        self._fill = _check_fill(fill)

    @classmethod
    def parse(
        cls,
        stream: Union[AnyBytes, IO],
        address: int = 0,
    ) -> 'RawFile':
        r"""Reads a binary image.

        Args:
            stream (bytes or bytes IO):
                Image bytes, or a stream to read them from.

            address (int):
                Address of the first byte.

        Returns:
            :class:`RawFile`: File object.

        Raises:
            :class:`AddressOverflowError`: The image does not fit within the
                address domain.
        """

        if isinstance(stream, (bytes, bytearray, memoryview)):
            data = bytes(stream)
        else:
            data = stream.read()

        address = address.__index__()
        if address < ADDRESS_MIN:
            raise AddressOverflowError(address, ADDRESS_MIN)
        endin = address + len(data) - 1
        if endin > ADDRESS_MAX:
            raise AddressOverflowError(endin, ADDRESS_MAX)

        space = AddressSpace()
        if data:
            space.memory.write(address, data)
        return cls.from_space(space)

    def to_bytes(
        self,
        start: Optional[int] = None,
        endex: Optional[int] = None,
        fill: Optional[int] = None,
    ) -> bytes:
        r"""Writes a dense binary image.

        Args:
            start (int):
                Inclusive start address; the lowest one with data if ``None``.

            endex (int):
                Exclusive end address; after the highest one with data if
                ``None``.

            fill (int):
                Byte value filling holes; :attr:`fill` if ``None``.

        Returns:
            bytes: Binary image.

        See Also:
            :func:`write_bin`
        """

        if fill is None:
            fill = self._fill
        return write_bin(self._space, start=start, endex=endex, fill=fill)

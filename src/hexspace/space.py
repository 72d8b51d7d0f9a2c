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

r"""Sparse address space.

An :class:`AddressSpace` maps 32-bit unsigned addresses to byte values.
Only the addresses actually holding data take memory: the store is backed by
a :class:`bytesparse.Memory`, which keeps a sorted list of contiguous blocks
and looks addresses up by bisection.
"""

from typing import Any
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from bytesparse import Memory
from bytesparse.base import ImmutableMemory

from .errors import AddressOverflowError
from .errors import InvalidAddressError

AnyBytes = Union[bytes, bytearray, memoryview]

ADDRESS_MIN: int = 0
r"""Lowest address of the domain."""

ADDRESS_MAX: int = 0xFFFFFFFF
r"""Highest address of the domain (inclusive)."""


def check_address(address: int) -> int:
    r"""Checks that an address lies within the 32-bit domain.

    Args:
        address (int):
            Address to check.

    Returns:
        int: `address` as a plain integer.

    Raises:
        :class:`AddressOverflowError`: Address out of the domain.

    Examples:
        >>> from hexspace.space import check_address
        >>> hex(check_address(0xFFFFFFFF))
        '0xffffffff'
        >>> check_address(0x100000000)
        Traceback (most recent call last):
            ...
        hexspace.errors.AddressOverflowError: address overflow: 0x100000000 beyond limit 0xFFFFFFFF
    """

    address = address.__index__()
    if address < ADDRESS_MIN:
        raise AddressOverflowError(address, ADDRESS_MIN)
    if address > ADDRESS_MAX:
        raise AddressOverflowError(address, ADDRESS_MAX)
    return address


def check_span(address: int, size: int) -> int:
    r"""Checks that all the addresses of a span lie within the domain.

    Args:
        address (int):
            First address of the span.

        size (int):
            Number of addresses within the span.

    Returns:
        int: `address` as a plain integer.

    Raises:
        :class:`AddressOverflowError`: Span out of the domain.
    """

    address = check_address(address)
    if size > 0:
        check_address(address + size - 1)
    return address


class Segment:
    r"""Contiguous run of bytes.

    A read-only view of data stored at consecutive addresses, starting from
    :attr:`start`.

    Args:
        start (int):
            Address of the first byte.

        data (bytes):
            Byte values.

    Examples:
        >>> from hexspace import Segment
        >>> segment = Segment(0x1000, b'abc')
        >>> len(segment)
        3
        >>> hex(segment.endex), hex(segment.endin)
        ('0x1003', '0x1002')
    """

    __slots__ = ('_start', '_data')

    def __init__(self, start: int, data: AnyBytes):

        self._start: int = start.__index__()
        self._data: bytes = bytes(data)

    def __eq__(self, other: Any) -> bool:

        if isinstance(other, Segment):
            return self._start == other._start and self._data == other._data
        if isinstance(other, (tuple, list)) and len(other) == 2:
            return self._start == other[0] and self._data == other[1]
        return NotImplemented

    def __hash__(self) -> int:

        return hash((self._start, self._data))

    def __iter__(self) -> Iterator[Tuple[int, int]]:

        return iter(zip(range(self._start, self._start + len(self._data)), self._data))

    def __len__(self) -> int:

        return len(self._data)

    def __repr__(self) -> str:

        return f'Segment(start=0x{self._start:08X}, size={len(self._data)})'

    @property
    def data(self) -> bytes:
        r"""bytes: Byte values."""

        return self._data

    @property
    def endex(self) -> int:
        r"""int: Exclusive end address."""

        return self._start + len(self._data)

    @property
    def endin(self) -> int:
        r"""int: Inclusive end address."""

        return self._start + len(self._data) - 1

    @property
    def start(self) -> int:
        r"""int: Address of the first byte."""

        return self._start


class AddressSpace:
    r"""Sparse byte store keyed by 32-bit address.

    Addresses are unique, and iteration is always in ascending address order.

    Point access (:meth:`get`, :meth:`set`, :meth:`remove`) costs
    ``O(log n)`` over the number of contiguous segments.

    Args:
        memory (:class:`bytesparse.Memory`):
            Backing memory to take ownership of.
            If ``None``, an empty one is created.

    Examples:
        >>> from hexspace import AddressSpace
        >>> space = AddressSpace()
        >>> space.set(0x10, 0xAA) is None
        True
        >>> space.set_range(0x20, b'\x01\x02')
        >>> list(space.items())
        [(16, 170), (32, 1), (33, 2)]
        >>> space.segments()  # doctest: +ELLIPSIS
        <generator object ...>
        >>> [(s.start, s.data) for s in space.segments()]
        [(16, b'\xaa'), (32, b'\x01\x02')]
        >>> space.address_range()
        (16, 33)
    """

    __slots__ = ('_memory',)

    def __init__(self, memory: Optional[Memory] = None):

        if memory is None:
            memory = Memory()
        self._memory: Memory = memory

    def __bool__(self) -> bool:

        return bool(self._memory.content_parts)

    def __contains__(self, address: Any) -> bool:

        return self._memory.peek(address) is not None

    def __copy__(self) -> 'AddressSpace':

        return self.copy()

    def __deepcopy__(self, memo: Any = None) -> 'AddressSpace':

        return self.copy()

    def __eq__(self, other: Any) -> bool:
        r"""Equality test.

        An :class:`AddressSpace` equals another one holding the same values
        at the same addresses.
        It also compares equal to any mapping of addresses to byte values.

        Examples:
            >>> from hexspace import AddressSpace
            >>> space = AddressSpace.from_items({0x10: 0xBB})
            >>> space == {0x10: 0xBB}
            True
            >>> space == AddressSpace.from_bytes(b'\xBB', 0x10)
            True
        """

        if isinstance(other, AddressSpace):
            return self.to_blocks() == other.to_blocks()
        if isinstance(other, Mapping):
            return self.to_dict() == dict(other)
        return NotImplemented

    def __getitem__(self, address: int) -> int:

        value = self._memory.peek(address)
        if value is None:
            raise InvalidAddressError(address)
        return value

    def __iter__(self) -> Iterator[int]:

        return self.keys()

    def __len__(self) -> int:

        return self._memory.content_size

    def __repr__(self) -> str:

        span = self.address_range()
        if span is None:
            return f'<{type(self).__name__} empty>'
        return (f'<{type(self).__name__} 0x{span[0]:08X}..0x{span[1]:08X} '
                f'size={len(self)} segments={self.segment_count}>')

    @classmethod
    def from_blocks(
        cls,
        blocks: Iterable[Tuple[int, AnyBytes]],
        offset: int = 0,
    ) -> 'AddressSpace':
        r"""Creates a space from ``(start, data)`` blocks.

        Later blocks overwrite earlier ones where they overlap.

        Args:
            blocks (list):
                Sequence of ``(start, data)`` pairs.

            offset (int):
                Offset added to each block start.

        Returns:
            :class:`AddressSpace`: New address space.

        Examples:
            >>> from hexspace import AddressSpace
            >>> space = AddressSpace.from_blocks([(0, b'abc'), (2, b'xyz')])
            >>> space.to_blocks()
            [(0, b'abxyz')]
        """

        space = cls()
        for start, data in blocks:
            space.set_range(start + offset, data)
        return space

    @classmethod
    def from_bytes(cls, data: AnyBytes, offset: int = 0) -> 'AddressSpace':

        space = cls()
        space.set_range(offset, data)
        return space

    @classmethod
    def from_items(
        cls,
        items: Union[Mapping[int, int], Iterable[Tuple[int, int]]],
    ) -> 'AddressSpace':
        r"""Creates a space from ``(address, value)`` items.

        Args:
            items (dict or pairs):
                Mapping, or sequence of ``(address, value)`` pairs.

        Returns:
            :class:`AddressSpace`: New address space.
        """

        if isinstance(items, Mapping):
            items = items.items()

        space = cls()
        for address, value in items:
            space.set(address, value)
        return space

    @classmethod
    def from_memory(cls, memory: ImmutableMemory) -> 'AddressSpace':
        r"""Creates a space copying a :mod:`bytesparse` memory object.

        The memory contents are not checked against the address domain;
        codecs do that when serializing.
        """

        return cls(Memory.from_memory(memory, copy=True))

    @property
    def memory(self) -> Memory:
        r""":class:`bytesparse.Memory`: Backing memory object."""

        return self._memory

    @property
    def segment_count(self) -> int:
        r"""int: Number of maximal contiguous segments."""

        return self._memory.content_parts

    def address_range(self) -> Optional[Tuple[int, int]]:
        r"""Inclusive address range.

        Returns:
            (int, int): ``(min, max)`` addresses holding data,
            or ``None`` if empty.
        """

        memory = self._memory
        if not memory.content_parts:
            return None
        return memory.content_start, memory.content_endin

    def copy(self) -> 'AddressSpace':

        return type(self)(self._memory.copy())

    def get(self, address: int) -> Optional[int]:

        return self._memory.peek(address.__index__())

    def get_many(self, addresses: Iterable[int]) -> Optional[bytes]:
        r"""Gets the values at the given addresses.

        Args:
            addresses (ints):
                Addresses to read, in the wanted order.

        Returns:
            bytes: Values read, or ``None`` if any address holds no data.

        Examples:
            >>> from hexspace import AddressSpace
            >>> space = AddressSpace.from_bytes(b'abc', 0x100)
            >>> space.get_many([0x102, 0x100])
            b'ca'
            >>> space.get_many([0x100, 0x103]) is None
            True
        """

        peek = self._memory.peek
        buffer = bytearray()
        for address in addresses:
            value = peek(address)
            if value is None:
                return None
            buffer.append(value)
        return bytes(buffer)

    def is_empty(self) -> bool:

        return not self._memory.content_parts

    def items(self) -> Iterator[Tuple[int, int]]:
        r"""Iterates over stored items.

        Each call returns a fresh lazy generator.

        Yields:
            (int, int): ``(address, value)`` pairs, by ascending address.
        """

        for segment in self.segments():
            yield from segment

    def keys(self) -> Iterator[int]:

        for segment in self.segments():
            yield from range(segment.start, segment.endex)

    def patch(self, address: int, value: int) -> int:
        r"""Updates an existing value.

        Unlike :meth:`set`, it never creates new data.

        Args:
            address (int):
                Address holding the value to update.

            value (int):
                New byte value.

        Returns:
            int: Previous value.

        Raises:
            :class:`InvalidAddressError`: No data at `address`.
        """

        value = _check_value(value)
        previous = self._memory.peek(address)
        if previous is None:
            raise InvalidAddressError(address)
        self._memory.poke(address, value)
        return previous

    def patch_many(self, items: Iterable[Tuple[int, int]]) -> None:
        r"""Updates many existing values.

        All the addresses are checked before any update takes place, so either
        all values are updated, or none.

        Args:
            items (pairs):
                ``(address, value)`` pairs.

        Raises:
            :class:`InvalidAddressError`: No data at some address.
        """

        items = [(address, _check_value(value)) for address, value in items]
        peek = self._memory.peek
        for address, _ in items:
            if peek(address) is None:
                raise InvalidAddressError(address)

        poke = self._memory.poke
        for address, value in items:
            poke(address, value)

    def remove(self, address: int) -> Optional[int]:
        r"""Removes a value.

        Other addresses are not shifted.

        Args:
            address (int):
                Address to clear.

        Returns:
            int: Removed value, or ``None`` if there was no data.
        """

        memory = self._memory
        previous = memory.peek(address)
        if previous is not None:
            memory.clear(address, address + 1)
        return previous

    def remove_range(self, start: int, length: int) -> None:

        if length > 0:
            self._memory.clear(start, start + length)

    def segments(self) -> Iterator[Segment]:
        r"""Iterates over maximal contiguous segments.

        Yields:
            :class:`Segment`: Segments by ascending address.
        """

        for block_start, block_view in self._memory.blocks():
            yield Segment(block_start, block_view)

    def set(self, address: int, value: int) -> Optional[int]:
        r"""Sets a value.

        Args:
            address (int):
                Address to write.

            value (int):
                Byte value.

        Returns:
            int: Previous value, or ``None`` if there was no data.

        Raises:
            :class:`AddressOverflowError`: Address out of the domain.
            ValueError: Invalid byte value.
        """

        address = check_address(address)
        value = _check_value(value)
        memory = self._memory
        previous = memory.peek(address)
        memory.poke(address, value)
        return previous

    def set_range(self, address: int, data: AnyBytes) -> None:
        r"""Writes consecutive values.

        The whole span is checked before writing anything.

        Args:
            address (int):
                Address of the first value.

            data (bytes):
                Values to write.

        Raises:
            :class:`AddressOverflowError`: Span out of the domain.
        """

        address = check_span(address, len(data))
        if data:
            self._memory.write(address, data)

    def to_blocks(self) -> List[Tuple[int, bytes]]:

        return [(segment.start, segment.data) for segment in self.segments()]

    def to_dict(self) -> dict:

        return dict(self.items())

    def values(self) -> Iterator[int]:

        for segment in self.segments():
            yield from segment.data


def _check_value(value: int) -> int:

    value = value.__index__()
    if not 0 <= value <= 0xFF:
        raise ValueError('byte value overflow')
    return value


def as_space(source: Any) -> AddressSpace:
    r"""Extracts an :class:`AddressSpace` from a generic source.

    Args:
        source:
            Either an :class:`AddressSpace`, or an object exposing it via a
            ``view_space()`` method (e.g. a :class:`hexspace.base.BaseFile`),
            or via a ``space`` attribute.

            The returned object is meant for reading only.

    Returns:
        :class:`AddressSpace`: The address space of `source`.

    Raises:
        TypeError: Unsupported source.
    """

    if isinstance(source, AddressSpace):
        return source
    view_space = getattr(source, 'view_space', None)
    if view_space is not None:
        space = view_space()
    else:
        space = getattr(source, 'space', None)
    if isinstance(space, AddressSpace):
        return space
    raise TypeError(f'not an address space: {type(source).__name__}')

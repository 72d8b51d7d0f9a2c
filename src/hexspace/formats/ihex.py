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

r"""Intel HEX format.

Each line is a record: ``:LLAAAATT[DD...]CC``, where ``LL`` is the byte count
of the data field, ``AAAA`` the 16-bit address, ``TT`` the record type,
``DD`` the data bytes, and ``CC`` the checksum, all as uppercase hexadecimal
digit pairs.

Extended addressing records set the base added to the 16-bit address of the
following data records:

* *Extended Segment Address*: base is ``value * 16``;
* *Extended Linear Address*: base is ``value << 16``.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import binascii
import enum
import io
import sys
from typing import IO
from typing import Any
from typing import Iterable
from typing import Iterator
from typing import List
from typing import Mapping
from typing import NamedTuple
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Type
from typing import Union

from ..base import BaseFile
from ..base import colorize_tokens
from ..errors import AddressOverflowError
from ..errors import AddressOverlapError
from ..errors import ChecksumMismatchError
from ..errors import DuplicateStartAddressError
from ..errors import MalformedRecordError
from ..errors import MissingEndOfFileError
from ..errors import UnsupportedRecordTypeError
from ..space import ADDRESS_MAX
from ..space import AddressSpace
from ..space import AnyBytes
from ..space import check_span
from ..utils import hexlify

SEGMENT_ADDRESS_MAX: int = 0x000FFFFF
r"""Highest address reachable by segment addressing."""


class IhexTag(enum.IntEnum):
    r"""Intel HEX record type."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 3
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 5
    r"""Start Linear Address."""

    def is_data(self) -> bool:

        return self == self.DATA

    def is_eof(self) -> bool:

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record tag.

        Returns:
            bool: This is an Extended Address record tag.

        Examples:
            >>> from hexspace.formats.ihex import IhexTag
            >>> IhexTag.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> IhexTag.START_LINEAR_ADDRESS.is_extension()
            False
        """

        return ((self == self.EXTENDED_SEGMENT_ADDRESS) or
                (self == self.EXTENDED_LINEAR_ADDRESS))

    def is_start(self) -> bool:

        return ((self == self.START_SEGMENT_ADDRESS) or
                (self == self.START_LINEAR_ADDRESS))


class StartAddress(NamedTuple):
    r"""Start address carried by a start record.

    For the segment kind, the ``CS:IP`` pair is packed as ``CS << 16 | IP``.
    """

    tag: IhexTag
    r"""Start record kind."""

    address: int
    r"""32-bit payload value."""

    @property
    def linear(self) -> bool:

        return self.tag == IhexTag.START_LINEAR_ADDRESS


class IhexRecord:
    r"""Intel HEX record object.

    Args:
        tag (:class:`IhexTag`):
            Record type.

        address (int):
            16-bit address field.

        data (bytes):
            Data field.

        count (int):
            Byte count field. If ``None``, it is computed from `data`.

        checksum (int):
            Checksum field. If ``None``, it is computed from the other
            fields.

        coords (int, int):
            1-based ``(line, column)`` coordinates within the parsed text,
            or ``(-1, -1)`` when not parsed.

    Examples:
        >>> from hexspace.formats.ihex import IhexRecord
        >>> record = IhexRecord.create_data(0x1234, b'abc')
        >>> record.to_bytestr()
        b':0312340061626391\r\n'
    """

    Tag: Type[IhexTag] = IhexTag

    def __init__(
        self,
        tag: IhexTag,
        address: int = 0,
        data: AnyBytes = b'',
        count: Optional[int] = None,
        checksum: Optional[int] = None,
        coords: Tuple[int, int] = (-1, -1),
    ):

        self.tag: IhexTag = self.Tag(tag)
        self.address: int = address.__index__()
        self.data: bytes = bytes(data)
        self.count: int = self.compute_count() if count is None else count
        self.checksum: int = self.compute_checksum() if checksum is None else checksum
        self.coords: Tuple[int, int] = coords

    def __eq__(self, other: Any) -> bool:

        if isinstance(other, IhexRecord):
            return (self.tag == other.tag and
                    self.address == other.address and
                    self.data == other.data and
                    self.count == other.count and
                    self.checksum == other.checksum)
        return NotImplemented

    def __repr__(self) -> str:

        return (f'<{type(self).__name__} tag={self.tag.name} '
                f'address=0x{self.address:04X} count={self.count}>')

    def compute_checksum(self) -> int:
        r"""Computes the checksum.

        It is the two's complement of the low byte of the sum of all the
        record bytes, from the byte count to the last data byte.

        Returns:
            int: Checksum value.

        Examples:
            >>> from hexspace.formats.ihex import IhexRecord
            >>> hex(IhexRecord.create_end_of_file().compute_checksum())
            '0xff'
        """

        address = self.address & 0xFFFF
        total = (self.count & 0xFF) + (address >> 8) + (address & 0xFF)
        total += int(self.tag) + sum(self.data)
        return (0x100 - (total & 0xFF)) & 0xFF

    def compute_count(self) -> int:

        return len(self.data)

    @classmethod
    def create_data(cls, address: int, data: AnyBytes) -> 'IhexRecord':

        address = address.__index__()
        if not 0 <= address <= 0xFFFF:
            raise ValueError('address overflow')
        if len(data) > 0xFF:
            raise ValueError('data size overflow')
        return cls(cls.Tag.DATA, address=address, data=data)

    @classmethod
    def create_end_of_file(cls) -> 'IhexRecord':

        return cls(cls.Tag.END_OF_FILE)

    @classmethod
    def create_extended_linear_address(cls, extension: int) -> 'IhexRecord':
        r"""Creates an Extended Linear Address record.

        Args:
            extension (int):
                Upper 16 bits of the following data record addresses.

        Returns:
            :class:`IhexRecord`: Extended Linear Address record.

        Examples:
            >>> from hexspace.formats.ihex import IhexRecord
            >>> IhexRecord.create_extended_linear_address(0xABCD).to_bytestr()
            b':02000004ABCD82\r\n'
        """

        extension = extension.__index__()
        if not 0 <= extension <= 0xFFFF:
            raise ValueError('extension overflow')
        data = extension.to_bytes(2, byteorder='big')
        return cls(cls.Tag.EXTENDED_LINEAR_ADDRESS, data=data)

    @classmethod
    def create_extended_segment_address(cls, extension: int) -> 'IhexRecord':
        r"""Creates an Extended Segment Address record.

        Args:
            extension (int):
                Segment value; the base address is ``extension * 16``.

        Returns:
            :class:`IhexRecord`: Extended Segment Address record.

        Examples:
            >>> from hexspace.formats.ihex import IhexRecord
            >>> IhexRecord.create_extended_segment_address(0x1000).to_bytestr()
            b':020000021000EC\r\n'
        """

        extension = extension.__index__()
        if not 0 <= extension <= 0xFFFF:
            raise ValueError('extension overflow')
        data = extension.to_bytes(2, byteorder='big')
        return cls(cls.Tag.EXTENDED_SEGMENT_ADDRESS, data=data)

    @classmethod
    def create_start_linear_address(cls, address: int) -> 'IhexRecord':

        address = address.__index__()
        if not 0 <= address <= ADDRESS_MAX:
            raise ValueError('address overflow')
        data = address.to_bytes(4, byteorder='big')
        return cls(cls.Tag.START_LINEAR_ADDRESS, data=data)

    @classmethod
    def create_start_segment_address(cls, address: int) -> 'IhexRecord':

        address = address.__index__()
        if not 0 <= address <= ADDRESS_MAX:
            raise ValueError('address overflow')
        data = address.to_bytes(4, byteorder='big')
        return cls(cls.Tag.START_SEGMENT_ADDRESS, data=data)

    def data_to_int(self) -> int:

        return int.from_bytes(self.data, byteorder='big')

    @classmethod
    def parse(
        cls,
        line: Union[AnyBytes, str],
        row: int = 0,
    ) -> 'IhexRecord':
        r"""Parses a record from a line.

        Checks are performed in this order: record structure, record type,
        payload size for the record type, checksum.

        Args:
            line (bytes or str):
                Text line, with or without the line terminator.

            row (int):
                1-based line number, reported by errors.

        Returns:
            :class:`IhexRecord`: Parsed record.

        Raises:
            :class:`MalformedRecordError`: Invalid record structure.
            :class:`UnsupportedRecordTypeError`: Unknown record type.
            :class:`ChecksumMismatchError`: Invalid checksum.

        Examples:
            >>> from hexspace.formats.ihex import IhexRecord
            >>> record = IhexRecord.parse(b':0312340061626391\r\n')
            >>> record.address, record.data
            (4660, b'abc')
            >>> IhexRecord.parse(':031234006162639', row=7)
            Traceback (most recent call last):
                ...
            hexspace.errors.MalformedRecordError: line 7: odd number of hex digits
        """

        if isinstance(line, str):
            try:
                line = line.encode('ascii')
            except UnicodeEncodeError:
                raise MalformedRecordError(row, 'non-ASCII character') from None

        line = bytes(line).strip()
        if not line.startswith(b':'):
            raise MalformedRecordError(row, 'missing start code')

        digits = line[1:]
        if len(digits) & 1:
            raise MalformedRecordError(row, 'odd number of hex digits')
        try:
            raw = binascii.unhexlify(digits)
        except binascii.Error:
            raise MalformedRecordError(row, 'invalid hex digit') from None

        if len(raw) < 5:
            raise MalformedRecordError(row, 'record too short')
        count = raw[0]
        if count != len(raw) - 5:
            raise MalformedRecordError(row, 'byte count mismatch')

        code = raw[3]
        try:
            tag = cls.Tag(code)
        except ValueError:
            raise UnsupportedRecordTypeError(row, code) from None

        record = cls(tag,
                     address=((raw[1] << 8) | raw[2]),
                     data=raw[4:-1],
                     count=count,
                     checksum=raw[-1],
                     coords=(row, 1))
        record.validate()

        expected = record.compute_checksum()
        if record.checksum != expected:
            raise ChecksumMismatchError(row, expected, record.checksum)
        return record

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        end: AnyBytes = b'\r\n',
    ) -> 'IhexRecord':
        r"""Prints the record onto a byte stream.

        Args:
            stream (bytes IO):
                The byte stream where the record tokens are printed.
                If ``None``, *stdout* is selected.

            color (bool):
                Tokens are colorized with ANSI codes before printing.

            end (bytes):
                Line terminator.

        Returns:
            :class:`IhexRecord`: *self*.
        """

        if stream is None:
            stream = sys.stdout.buffer
        tokens = self.to_tokens(end=end)
        if color:
            tokens = colorize_tokens(tokens)
        stream.writelines(tokens.values())
        return self

    def serialize(self, stream: IO, end: AnyBytes = b'\r\n') -> 'IhexRecord':

        stream.write(self.to_bytestr(end=end))
        return self

    def to_bytestr(self, end: AnyBytes = b'\r\n') -> bytes:

        return b':%02X%04X%02X%s%02X%s' % (
            self.count & 0xFF,
            self.address & 0xFFFF,
            int(self.tag),
            hexlify(self.data),
            self.checksum & 0xFF,
            end,
        )

    def to_tokens(self, end: AnyBytes = b'\r\n') -> Mapping[str, bytes]:

        return {
            'begin': b':',
            'count': b'%02X' % (self.count & 0xFF),
            'address': b'%04X' % (self.address & 0xFFFF),
            'tag': b'%02X' % int(self.tag),
            'data': hexlify(self.data),
            'checksum': b'%02X' % (self.checksum & 0xFF),
            'end': bytes(end),
        }

    def validate(self) -> 'IhexRecord':
        r"""Validates the payload size and address for the record type.

        Returns:
            :class:`IhexRecord`: *self*.

        Raises:
            :class:`MalformedRecordError`: Inconsistent record.
        """

        row = self.coords[0]
        tag = self.tag
        data_size = len(self.data)

        if tag.is_data():
            return self

        if self.address:
            raise MalformedRecordError(row, f'non-zero address for {tag.name} record')

        if tag.is_start():
            if data_size != 4:
                raise MalformedRecordError(row, 'start address data size must be 4')

        elif tag.is_extension():
            if data_size != 2:
                raise MalformedRecordError(row, 'extension data size must be 2')

        elif data_size:  # END_OF_FILE
            raise MalformedRecordError(row, 'unexpected end of file data')

        return self


def _chop(start: int, data: bytes, maxdatalen: int) -> Iterator[Tuple[int, bytes]]:

    offset = 0
    size = len(data)
    while offset < size:
        address = start + offset
        length = min(maxdatalen, size - offset, 0x10000 - (address & 0xFFFF))
        yield address, data[offset:(offset + length)]
        offset += length


class IhexFile(BaseFile):
    r"""Intel HEX file object.

    It plays two roles: it holds the parsed or generated :attr:`records`,
    and the :attr:`space` they describe.
    Either is computed from the other upon access.

    Examples:
        >>> from hexspace import IhexFile
        >>> file = IhexFile.parse(b':020010000102EB\n:00000001FF\n')
        >>> file.space.to_blocks()
        [(16, b'\x01\x02')]
        >>> file.space.set(0x12, 0x03)
        >>> _ = file.print()
        :03001000010203E7
        :00000001FF
    """

    FILE_EXT: Sequence[str] = [
        # General purpose
        '.hex', '.mcs', '.int', '.ihex', '.ihe', '.ihx',
        # Platform specific
        '.h80', '.h86', '.a43', '.a90',
        # Binary or Intel HEX
        '.obj', '.obl', '.obh', '.rom', '.eep',
    ]

    META_KEYS: Sequence[str] = [
        'linear',
        'maxdatalen',
        'startaddr',
    ]

    Record: Type[IhexRecord] = IhexRecord

    def __init__(self):

        super().__init__()

        self._linear: bool = True
        self._startaddr: Optional[StartAddress] = None

    def apply_records(self) -> 'IhexFile':
        r"""Applies records to the address space.

        The records are processed in order, tracking the active extension
        base; the most recent extension record wins, whatever its kind.
        Processing stops at the first End Of File record.

        Returns:
            :class:`IhexFile`: *self*.

        Raises:
            ValueError: No records.
            :class:`AddressOverlapError`: Data written twice.
            :class:`AddressOverflowError`: Data beyond the 32-bit domain.
            :class:`DuplicateStartAddressError`: More than one start record.
        """

        records = self._records
        if records is None:
            raise ValueError('records required')

        Tag = self.Record.Tag
        space = AddressSpace()
        memory = space.memory
        extension = 0
        startaddr = None
        has_ela = False
        has_esa = False

        for record in records:
            tag = record.tag
            row = record.coords[0]

            if tag == Tag.DATA:
                size = len(record.data)
                if size:
                    address = extension + record.address
                    endex = address + size
                    if endex - 1 > ADDRESS_MAX:
                        raise AddressOverflowError(endex - 1, ADDRESS_MAX)
                    for overlap_start, _ in memory.intervals(address, endex):
                        raise AddressOverlapError(row, max(overlap_start, address))
                    memory.write(address, record.data)

            elif tag == Tag.EXTENDED_LINEAR_ADDRESS:
                has_ela = True
                extension = record.data_to_int() << 16

            elif tag == Tag.EXTENDED_SEGMENT_ADDRESS:
                has_esa = True
                extension = record.data_to_int() << 4

            elif tag.is_start():
                if startaddr is not None:
                    raise DuplicateStartAddressError(row)
                startaddr = StartAddress(tag, record.data_to_int())

            else:  # END_OF_FILE
                break

        self._space = space
        self._startaddr = startaddr
        self._linear = has_ela or not has_esa
        return self

    def discard_records(self) -> 'IhexFile':

        if self._space is None:
            self.apply_records()
        self._records = None
        return self

    @classmethod
    def from_records(
        cls,
        records: List[IhexRecord],
        maxdatalen: Optional[int] = None,
    ) -> 'IhexFile':
        r"""Creates a file object from records.

        The records are applied to the address space right away, so that any
        inconsistency is reported here.

        Args:
            records (list of :class:`IhexRecord`):
                Record sequence to set as :attr:`records`.

            maxdatalen (int):
                Maximum record data field size.
                If ``None``, the largest data field among `records` is used,
                falling back to :attr:`DEFAULT_DATALEN`.

        Returns:
            :class:`IhexFile`: The created file object.
        """

        if maxdatalen is None:
            sizes = (len(r.data) for r in records if r.tag.is_data())
            maxdatalen = max(sizes, default=0) or cls.DEFAULT_DATALEN
        else:
            maxdatalen = maxdatalen.__index__()
            if not 1 <= maxdatalen <= 0xFF:
                raise ValueError('invalid maximum data length')

        file = cls()
        file._records = records
        file._space = None
        file._maxdatalen = maxdatalen
        file.apply_records()
        return file

    @property
    def linear(self) -> bool:
        r"""bool: Linear addressing.

        When true (the default), records are generated for full 32-bit
        addressing via *Extended Linear Address* records.

        When false, *Extended Segment Address* records are generated instead,
        as long as all the data fits within 20 bits; otherwise the file falls
        back to *Extended Linear Address* records.

        When parsed, it is false only if all the extension records were of the
        segment kind.

        Examples:
            >>> from hexspace import IhexFile
            >>> file = IhexFile.from_blocks([(0x000F4321, b'xyz')])
            >>> _ = file.print()
            :02000004000FEB
            :0343210078797A2E
            :00000001FF
            >>> file.linear = False
            >>> _ = file.print()
            :02000002F0000C
            :0343210078797A2E
            :00000001FF
        """

        return self._linear

    @linear.setter
    def linear(self, linear: bool) -> None:

        linear = bool(linear)
        if linear != self._linear:
            self.discard_records()
        self._linear = linear

    @classmethod
    def parse(
        cls,
        stream: Union[AnyBytes, str, IO, Iterable[Union[AnyBytes, str]]],
        maxdatalen: Optional[int] = None,
    ) -> 'IhexFile':
        r"""Parses records from text.

        Lines are numbered from 1; blank lines are skipped; anything after the
        End Of File record is ignored.

        Args:
            stream:
                Byte string, text string, binary or text stream, or an
                iterable of lines.

            maxdatalen (int):
                Forwarded to :meth:`from_records`.

        Returns:
            :class:`IhexFile`: Parsed file object.

        Raises:
            :class:`MalformedRecordError`: Invalid record line.
            :class:`UnsupportedRecordTypeError`: Unknown record type.
            :class:`ChecksumMismatchError`: Invalid checksum.
            :class:`MissingEndOfFileError`: No End Of File record.
            :class:`AddressOverlapError`: Data written twice.
            :class:`AddressOverflowError`: Data beyond the 32-bit domain.
            :class:`DuplicateStartAddressError`: More than one start record.

        Examples:
            >>> from hexspace import IhexFile
            >>> buffer = b'''
            ...     :020000040001F9
            ...     :03DA7A0061626383
            ...     :040000050000CAFE2F
            ...     :00000001FF
            ... '''
            >>> file = IhexFile.parse(buffer)
            >>> file.space.to_blocks()
            [(121466, b'abc')]
            >>> file.get_meta()
            {'linear': True, 'maxdatalen': 3, 'startaddr': StartAddress(tag=<IhexTag.START_LINEAR_ADDRESS: 5>, address=51966)}
        """

        if isinstance(stream, (bytes, bytearray, memoryview)):
            lines = bytes(stream).splitlines()
        elif isinstance(stream, str):
            lines = stream.splitlines()
        elif isinstance(stream, io.IOBase):
            lines = stream
        else:
            lines = iter(stream)

        Record = cls.Record
        records = []
        row = 0
        terminated = False

        for line in lines:
            row += 1

            if cls._is_line_empty(line):
                continue

            record = Record.parse(line, row=row)
            records.append(record)

            if record.tag.is_eof():
                terminated = True
                break

        if not terminated:
            raise MissingEndOfFileError()

        return cls.from_records(records, maxdatalen=maxdatalen)

    def print(
        self,
        stream: Optional[IO] = None,
        color: bool = False,
        start: Optional[int] = None,
        stop: Optional[int] = None,
        end: AnyBytes = b'\r\n',
    ) -> 'IhexFile':
        r"""Prints records onto a byte stream.

        Args:
            stream (bytes IO):
                Stream to print onto.
                If ``None``, *stdout* is used.

            color (bool):
                Colorize record tokens with ANSI color codes.

            start (int):
                Inclusive start record index.

            stop (int):
                Exclusive end record index.

            end (bytes):
                Line terminator.

        Returns:
            :class:`IhexFile`: *self*.
        """

        for record in self.records[start:stop]:
            record.print(stream=stream, color=color, end=end)
        return self

    @property
    def records(self) -> List[IhexRecord]:
        r"""list of :class:`IhexRecord`: Records.

        If not available, they are generated from :attr:`space` by
        :meth:`update_records`.
        """

        if self._records is None:
            self.update_records()
        return self._records

    def serialize(self, stream: IO, end: AnyBytes = b'\r\n') -> 'IhexFile':

        for record in self.records:
            record.serialize(stream, end=end)
        return self

    @property
    def space(self) -> AddressSpace:
        r""":class:`AddressSpace`: Contents of the file object.

        As the caller may alter the returned object, any stored
        :attr:`records` are discarded.
        Use :meth:`view_space` for reading only.
        """

        self.discard_records()
        return self._space

    @property
    def startaddr(self) -> Optional[StartAddress]:
        r"""Start address.

        If not ``None``, a start record is generated right before the End Of
        File record, of the same kind as :attr:`StartAddress.tag`.

        It can also be assigned a plain integer; the kind then follows
        :attr:`linear`.

        Examples:
            >>> from hexspace import IhexFile
            >>> file = IhexFile()
            >>> file.startaddr = 0x87654321
            >>> _ = file.print()
            :0400000587654321A7
            :00000001FF
        """

        return self._startaddr

    @startaddr.setter
    def startaddr(self, startaddr: Optional[Union[StartAddress, int]]) -> None:

        if startaddr is not None:
            if isinstance(startaddr, tuple):
                tag = IhexTag(startaddr[0])
                address = startaddr[1].__index__()
                if not tag.is_start():
                    raise ValueError('invalid start address kind')
            else:
                address = startaddr.__index__()
                if self._linear:
                    tag = IhexTag.START_LINEAR_ADDRESS
                else:
                    tag = IhexTag.START_SEGMENT_ADDRESS

            if not 0 <= address <= ADDRESS_MAX:
                raise ValueError('invalid start address')
            startaddr = StartAddress(tag, address)

        if startaddr != self._startaddr:
            self.discard_records()
        self._startaddr = startaddr

    def to_bytes(self, end: AnyBytes = b'\r\n') -> bytes:
        r"""Serializes into a byte string.

        Args:
            end (bytes):
                Line terminator.

        Returns:
            bytes: Records text.

        Examples:
            >>> from hexspace import IhexFile
            >>> IhexFile.from_bytes(b'abc', 0x1234).to_bytes(end=b'\n')
            b':0312340061626391\n:00000001FF\n'
        """

        return b''.join(record.to_bytestr(end=end) for record in self.records)

    def update_records(self, start: bool = True) -> 'IhexFile':
        r"""Generates records from the address space.

        Data records are split at :attr:`maxdatalen` and at every 64 KiB
        window boundary.
        An extension record is emitted whenever the window of the next data
        record differs from the active one, which is initially zero.

        The file object is not altered if an exception is raised.

        Args:
            start (bool):
                Generate the start record, if :attr:`startaddr` is set.

        Returns:
            :class:`IhexFile`: *self*.

        When not :attr:`linear`, data beyond 20 bits cannot be reached by
        *Extended Segment Address* records, so *Extended Linear Address*
        records are generated for the whole file instead.

        Raises:
            ValueError: Invalid :attr:`maxdatalen`.
            :class:`AddressOverflowError`: Data beyond the 32-bit domain.
        """

        space = self._space
        if space is None:
            raise ValueError('address space required')

        maxdatalen = self._maxdatalen
        if not 1 <= maxdatalen <= 0xFF:
            raise ValueError('invalid maximum data length')

        Record = self.Record
        linear = self._linear
        records = []
        window = 0

        if not linear:
            address_range = space.address_range()
            if address_range is not None and address_range[1] > SEGMENT_ADDRESS_MAX:
                linear = True

        for segment in space.segments():
            check_span(segment.start, len(segment))

            for chunk_start, chunk in _chop(segment.start, segment.data, maxdatalen):
                if linear:
                    if (chunk_start >> 16) != window:
                        window = chunk_start >> 16
                        records.append(Record.create_extended_linear_address(window))
                else:
                    if (chunk_start & 0x000F0000) != window:
                        window = chunk_start & 0x000F0000
                        records.append(Record.create_extended_segment_address(window >> 4))

                records.append(Record.create_data(chunk_start & 0xFFFF, chunk))

        startaddr = self._startaddr
        if start and startaddr is not None:
            if startaddr.linear:
                records.append(Record.create_start_linear_address(startaddr.address))
            else:
                records.append(Record.create_start_segment_address(startaddr.address))

        records.append(Record.create_end_of_file())
        self._records = records
        return self

    def view_space(self) -> AddressSpace:

        if self._space is None:
            self.apply_records()
        return self._space

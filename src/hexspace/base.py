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

r"""Generic file objects and driver operations.

A *file object* couples an :class:`hexspace.space.AddressSpace` with the
*meta* information a specific file format needs to serialize it (e.g. the
maximum record data length, or the start address).

This module also hosts the format registry (:data:`file_types`), and the
format-agnostic operations built on top of address spaces:
:func:`info`, :func:`relocate`, :func:`merge`, and :func:`convert`.
"""

import abc
import enum
import io
import os
import sys
from typing import IO
from typing import Any
from typing import Iterable
from typing import Mapping
from typing import MutableMapping
from typing import Optional
from typing import Sequence
from typing import Tuple
from typing import Type
from typing import Union

import colorama

from .errors import AddressConflictError
from .errors import AddressOverflowError
from .errors import EmptyRangeError
from .errors import SourceIndexError
from .space import ADDRESS_MAX
from .space import ADDRESS_MIN
from .space import AddressSpace
from .space import AnyBytes
from .space import as_space

AnyPath = Union[bytes, bytearray, str, os.PathLike]

AnySource = Union[AddressSpace, 'BaseFile']

file_types: MutableMapping[str, Type['BaseFile']] = {}
r"""Registered file types.

This is an ordered mapping, where the first item has top priority."""

TOKEN_COLOR_CODES: Mapping[str, bytes] = {
    '':         colorama.Style.RESET_ALL.encode(),
    '<':        colorama.Style.RESET_ALL.encode(),
    '>':        colorama.Style.RESET_ALL.encode(),
    'address':  colorama.Fore.RED.encode(),
    'begin':    colorama.Fore.YELLOW.encode(),
    'checksum': colorama.Fore.MAGENTA.encode(),
    'count':    colorama.Fore.BLUE.encode(),
    'data':     colorama.Fore.CYAN.encode(),
    'dataalt':  colorama.Fore.LIGHTCYAN_EX.encode(),
    'end':      colorama.Style.RESET_ALL.encode(),
    'tag':      colorama.Fore.GREEN.encode(),
}
r"""ANSI color codes for each record token type."""


def colorize_tokens(
    tokens: Mapping[str, bytes],
    altdata: bool = True,
) -> Mapping[str, bytes]:
    r"""Prepends ANSI color codes to record field tokens.

    Each token key looks up its color code within :data:`TOKEN_COLOR_CODES`;
    unknown keys get the reset code.
    Empty tokens are dropped.

    Args:
        tokens (dict):
            A mapping of each token key name to token byte string.

        altdata (bool):
            If true, data bytes (pairs of hex digits) alternate between the
            ``data`` and ``dataalt`` color codes.

    Returns:
        dict: `tokens` with prepended ANSI color codes, wrapped by the ``<``
        and ``>`` reset codes.

    Examples:
        >>> from hexspace.base import colorize_tokens
        >>> colorized = colorize_tokens({'begin': b':', 'data': b'AABB'})
        >>> colorized['data']
        b'\x1b[36mAA\x1b[96mBB'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {'<': codes['<']}

    for key, value in tokens.items():
        if not value:
            continue
        code = codes.get(key, codes[''])

        if key == 'data' and altdata:
            altcode = codes['dataalt']
            buffer = bytearray()
            for index in range(0, len(value), 2):
                buffer.extend(altcode if index & 2 else code)
                buffer.extend(value[index:index + 2])
            colorized[key] = bytes(buffer)
        else:
            colorized[key] = code + value

    colorized['>'] = codes['>']
    return colorized


def guess_format_name(file_path: AnyPath) -> str:
    r"""Guesses the file format name.

    The file extension (case-insensitive) is looked up within the
    :attr:`BaseFile.FILE_EXT` of each format registered into
    :data:`file_types`; the first match wins.

    Args:
        file_path (str):
            File path to analyze.

    Returns:
        str: Format name registered within :data:`file_types`.

    Raises:
        ValueError: Cannot guess the file format.

    Examples:
        >>> from hexspace import guess_format_name
        >>> guess_format_name('firmware.hex')
        'ihex'
        >>> guess_format_name('BOOT.BIN')
        'raw'
    """

    file_ext = os.path.splitext(os.fsdecode(file_path))[1].lower()

    for name, file_type in file_types.items():
        if file_ext in file_type.FILE_EXT:
            return name

    raise ValueError(f'extension not found: {file_ext!r}')


def guess_format_type(file_path: AnyPath) -> Type['BaseFile']:

    return file_types[guess_format_name(file_path)]


def load(
    in_path_or_stream: Optional[Union[AnyPath, IO]],
    *load_args: Any,
    in_format: Optional[str] = None,
    **load_kwargs: Any,
) -> 'BaseFile':
    r"""Loads a file.

    All the custom `load_args` and `load_kwargs` are forwarded to the actual
    underlying call to :meth:`BaseFile.load`.

    Args:
        in_path_or_stream (str):
            Input file path or byte stream.
            If ``None``, ``sys.stdin.buffer`` is used.

        in_format (str):
            Name of the input format, within :data:`file_types`.
            If ``None``, it is guessed from the file extension, falling back
            to trying each registered format in turn.

    Returns:
        :class:`BaseFile`: The loaded file object.

    Raises:
        ValueError: No registered format could parse the input.
    """

    if in_path_or_stream is None:
        in_path_or_stream = sys.stdin.buffer

    if in_format is not None:
        file_type = file_types[in_format]
        return file_type.load(in_path_or_stream, *load_args, **load_kwargs)

    last_exc: Exception = ValueError('no file types registered')

    if isinstance(in_path_or_stream, io.IOBase):
        stream = in_path_or_stream
        in_offset = stream.tell()
        for file_type in file_types.values():
            try:
                return file_type.load(stream, *load_args, **load_kwargs)
            except ValueError as exc:
                last_exc = exc
                stream.seek(in_offset)
    else:
        try:
            file_type = guess_format_type(in_path_or_stream)
        except ValueError as exc:
            last_exc = exc
        else:
            return file_type.load(in_path_or_stream, *load_args, **load_kwargs)

        for file_type in file_types.values():
            try:
                return file_type.load(in_path_or_stream, *load_args, **load_kwargs)
            except ValueError as exc:
                last_exc = exc

    raise last_exc


# =====================================================================================================================

def info(source: AnySource) -> Mapping[str, Any]:
    r"""Summarizes the contents of an address space.

    Args:
        source (:class:`AddressSpace` or :class:`BaseFile`):
            Address space to summarize.

    Returns:
        dict: ``address_range`` (inclusive ``(min, max)`` or ``None``),
        ``total_bytes``, and ``segment_count``.

    Examples:
        >>> from hexspace import AddressSpace, info
        >>> space = AddressSpace.from_blocks([(0x10, b'ab'), (0x20, b'c')])
        >>> info(space)
        {'address_range': (16, 32), 'total_bytes': 3, 'segment_count': 2}
    """

    space = as_space(source)
    return {
        'address_range': space.address_range(),
        'total_bytes': len(space),
        'segment_count': space.segment_count,
    }


def _check_shifted_range(
    span: Optional[Tuple[int, int]],
    offset: int,
    index: Optional[int] = None,
) -> None:

    if span is not None:
        lowest = span[0] + offset
        if lowest < ADDRESS_MIN:
            raise AddressOverflowError(lowest, ADDRESS_MIN, index=index)
        highest = span[1] + offset
        if highest > ADDRESS_MAX:
            raise AddressOverflowError(highest, ADDRESS_MAX, index=index)


def relocate(
    source: AnySource,
    offset: int = 0,
    start: Optional[int] = None,
) -> AddressSpace:
    r"""Relocates an address space.

    Every byte is moved by the same `offset`; the source is left untouched.

    Args:
        source (:class:`AddressSpace` or :class:`BaseFile`):
            Address space to relocate.

        offset (int):
            Signed offset added to every address.

        start (int):
            If not ``None``, the offset is computed so that the lowest
            address becomes `start`, and `offset` is ignored.

    Returns:
        :class:`AddressSpace`: Relocated copy.

    Raises:
        :class:`EmptyRangeError`: `start` given for an empty space.
        :class:`AddressOverflowError`: Some address would leave the domain.

    Examples:
        >>> from hexspace import AddressSpace, relocate
        >>> space = AddressSpace.from_bytes(b'abc', 0x1000)
        >>> relocate(space, 0x100).to_blocks()
        [(4352, b'abc')]
        >>> relocate(space, start=0).to_blocks()
        [(0, b'abc')]
    """

    space = as_space(source)
    span = space.address_range()

    if start is not None:
        if span is None:
            raise EmptyRangeError('cannot relocate an empty space to a start address')
        offset = start.__index__() - span[0]
    else:
        offset = offset.__index__()

    _check_shifted_range(span, offset)

    relocated = space.copy()
    if offset and span is not None:
        relocated.memory.shift(offset)
    return relocated


class MergePolicy(str, enum.Enum):
    r"""Collision handling while merging."""

    LAST_WINS = 'last'
    r"""Later sources overwrite earlier ones."""

    FIRST_WINS = 'first'
    r"""Earlier sources are kept; later ones only fill holes."""

    STRICT = 'strict'
    r"""Any collision is an error."""


def _split_merge_source(index: int, item: Any) -> Tuple[AddressSpace, int]:

    offset = None
    if isinstance(item, tuple):
        if len(item) != 2:
            raise SourceIndexError(index, 'expected a (space, offset) pair')
        item, offset = item

    try:
        space = as_space(item)
    except TypeError as exc:
        raise SourceIndexError(index, str(exc)) from None

    if offset is None:
        offset = 0
    elif isinstance(offset, bool) or not isinstance(offset, int):
        raise SourceIndexError(index, f'invalid offset: {offset!r}')

    return space, offset


def merge(
    sources: Iterable[Union[AnySource, Tuple[AnySource, Optional[int]]]],
    policy: Union[MergePolicy, str] = MergePolicy.LAST_WINS,
) -> AddressSpace:
    r"""Merges multiple address spaces.

    Sources are processed in order; each one is moved by its own offset
    before being combined into the result.

    All the sources and offsets are validated before anything is combined,
    so that either the whole merge succeeds, or nothing is produced.

    Holes are kept as holes: filling them is up to the output format
    (see :func:`convert` and :class:`hexspace.formats.raw.RawFile`).

    Args:
        sources (list):
            Ordered sequence, where each item is either an address space
            (or file object), or a ``(space, offset)`` pair with a possibly
            ``None`` offset.

        policy (:class:`MergePolicy`):
            Collision policy. By default, later sources win.

    Returns:
        :class:`AddressSpace`: Merged address space.

    Raises:
        :class:`SourceIndexError`: Malformed source item.
        :class:`AddressOverflowError`: Some source offset moves data out of
            the domain. Its ``index`` tells which source.
        :class:`AddressConflictError`: Collision under
            :attr:`MergePolicy.STRICT`.

    Examples:
        >>> from hexspace import AddressSpace, merge
        >>> a = AddressSpace.from_bytes(b'abc', 0)
        >>> b = AddressSpace.from_bytes(b'XY', 1)
        >>> merge([a, b]).to_blocks()
        [(0, b'aXY')]
        >>> merge([a, b], policy='first').to_blocks()
        [(0, b'abcY')]
        >>> merge([a, (b, 0x10)]).to_blocks()
        [(0, b'abc'), (16, b'XY')]
    """

    policy = MergePolicy(policy)
    entries = []

    for index, item in enumerate(sources):
        space, offset = _split_merge_source(index, item)
        _check_shifted_range(space.address_range(), offset, index=index)
        entries.append((space, offset))

    merged = AddressSpace()

    for index, (space, offset) in enumerate(entries):
        if policy is MergePolicy.FIRST_WINS:
            layer = relocate(space, offset)
            for segment in merged.segments():
                layer.memory.write(segment.start, segment.data)
            merged = layer

        else:
            memory = merged.memory
            for segment in space.segments():
                address = segment.start + offset
                endex = address + len(segment)

                if policy is MergePolicy.STRICT:
                    for conflict_start, _ in memory.intervals(address, endex):
                        raise AddressConflictError(max(conflict_start, address), index)

                memory.write(address, segment.data)

    return merged


def convert(
    source: Union[AnySource, AnyBytes],
    out_format: str,
    in_format: Optional[str] = None,
    address: Optional[int] = None,
    gap_fill: int = 0xFF,
    maxdatalen: Optional[int] = None,
) -> bytes:
    r"""Converts data into another format.

    Args:
        source:
            Address space, file object, or serialized bytes.

        out_format (str):
            Name of the output format, within :data:`file_types`.

        in_format (str):
            Name of the input format, within :data:`file_types`.
            Required when `source` holds serialized bytes.

        address (int):
            Load address of flat (raw binary) input bytes.
            Not allowed for any other kind of source.

        gap_fill (int):
            Byte value filling holes of flat output.

        maxdatalen (int):
            Maximum record data length, for record-based output.
            If ``None``, the source one (or the format default) is kept.

    Returns:
        bytes: Serialized output.

    Examples:
        >>> from hexspace import convert
        >>> convert(b'\x01\x02', 'ihex', in_format='raw', address=0x100)
        b':020100000102FA\r\n:00000001FF\r\n'
    """

    if isinstance(source, (bytes, bytearray, memoryview)):
        if in_format is None:
            raise ValueError('input format required for serialized data')
        in_type = file_types[in_format]

        if address is None:
            in_file = in_type.parse(source)
        elif in_type.FLAT:
            in_file = in_type.parse(source, address=address)
        else:
            raise ValueError(f'load address not applicable to format: {in_format!r}')

    elif address is not None:
        raise ValueError('load address only applies to flat serialized input')

    else:
        in_file = source

    out_type = file_types[out_format]
    out_file = out_type.convert(in_file)
    meta = {}
    if maxdatalen is not None:
        meta['maxdatalen'] = maxdatalen
    if out_type.FLAT:
        meta['fill'] = gap_fill
    out_file.set_meta(meta, strict=False)
    return out_file.to_bytes()


# =====================================================================================================================

class BaseFile(abc.ABC):
    r"""Abstract file object.

    A file object holds the :attr:`space` being serialized or parsed, along
    with the format-specific *meta* information listed by :attr:`META_KEYS`.

    Concrete formats implement :meth:`parse` and :meth:`to_bytes`; loading
    from and saving to paths or streams is shared.

    Formats made of text records may also keep the sequence of parsed or
    generated records, which is dropped via :meth:`discard_records` whenever
    the contents or *meta* change.
    """

    DEFAULT_DATALEN: int = 16
    r"""Default maximum data length per record."""

    FILE_EXT: Sequence[str] = []
    r"""File extensions typical of the format, lowercase."""

    FLAT: bool = False
    r"""Flat format, i.e. carrying no addressing information."""

    META_KEYS: Sequence[str] = ['maxdatalen']
    r"""Names of the *meta* attributes."""

    def __init__(self):

        super().__init__()

        self._space: Optional[AddressSpace] = AddressSpace()
        self._records: Optional[list] = None
        self._maxdatalen: int = self.DEFAULT_DATALEN

    def __eq__(self, other: Any) -> bool:

        if isinstance(other, BaseFile):
            return (type(self) is type(other) and
                    self.view_space() == other.view_space() and
                    self.get_meta() == other.get_meta())
        return NotImplemented

    @classmethod
    def _is_line_empty(cls, line: Union[AnyBytes, str]) -> bool:

        return not line or line.isspace()

    @classmethod
    def convert(
        cls,
        source: AnySource,
        meta: bool = True,
    ) -> 'BaseFile':
        r"""Converts to this format.

        It copies the :attr:`space` of `source`, and its *meta* information
        shared with this format.

        Args:
            source (:class:`BaseFile` or :class:`AddressSpace`):
                Source to convert.

            meta (bool):
                Copy the shared *meta* information.

        Returns:
            :class:`BaseFile`: Converted copy of `source`.
        """

        target_meta = {}
        if meta and isinstance(source, BaseFile):
            source_meta = source.get_meta()
            target_meta = {key: source_meta[key]
                           for key in cls.META_KEYS
                           if key in source_meta}

        return cls.from_space(as_space(source).copy(), **target_meta)

    def discard_records(self) -> 'BaseFile':

        self._records = None
        return self

    @classmethod
    def from_blocks(
        cls,
        blocks: Iterable[Tuple[int, AnyBytes]],
        offset: int = 0,
        **meta: Any,
    ) -> 'BaseFile':

        return cls.from_space(AddressSpace.from_blocks(blocks, offset=offset), **meta)

    @classmethod
    def from_bytes(
        cls,
        data: AnyBytes,
        offset: int = 0,
        **meta: Any,
    ) -> 'BaseFile':

        return cls.from_space(AddressSpace.from_bytes(data, offset=offset), **meta)

    @classmethod
    def from_space(
        cls,
        space: AddressSpace,
        **meta: Any,
    ) -> 'BaseFile':
        r"""Creates a file object from an address space.

        The `space` object is taken as is, without copying it.

        Args:
            space (:class:`AddressSpace`):
                Contents of the file object.

            meta:
                *Meta* information, as per :attr:`META_KEYS`.

        Returns:
            :class:`BaseFile`: The created file object.

        Raises:
            KeyError: Unknown *meta* key.
        """

        file = cls()
        file._space = space
        file.set_meta(meta)
        return file

    def get_meta(self) -> Mapping[str, Any]:

        return {key: getattr(self, key) for key in self.META_KEYS}

    @classmethod
    def load(
        cls,
        in_path_or_stream: Optional[Union[AnyPath, IO]],
        *args: Any,
        **kwargs: Any,
    ) -> 'BaseFile':
        r"""Loads a file object.

        Args:
            in_path_or_stream (str or bytes IO):
                Path of the file within the filesystem, or byte input stream.
                If ``None``, ``sys.stdin.buffer`` is used.

            args:
                Forwarded to :meth:`parse`.

            kwargs:
                Forwarded to :meth:`parse`.

        Returns:
            :class:`BaseFile`: Loaded file object.
        """

        if in_path_or_stream is None:
            in_path_or_stream = sys.stdin.buffer

        if isinstance(in_path_or_stream, io.IOBase):
            return cls.parse(in_path_or_stream, *args, **kwargs)
        else:
            with open(in_path_or_stream, 'rb') as stream:
                return cls.parse(stream, *args, **kwargs)

    @property
    def maxdatalen(self) -> int:
        r"""int: Maximum byte size of the data field of a record."""

        return self._maxdatalen

    @maxdatalen.setter
    def maxdatalen(self, maxdatalen: int) -> None:

        maxdatalen = maxdatalen.__index__()
        if maxdatalen < 1:
            raise ValueError('invalid maximum data length')
        if maxdatalen != self._maxdatalen:
            self.discard_records()
        self._maxdatalen = maxdatalen

    @classmethod
    @abc.abstractmethod
    def parse(
        cls,
        stream: Union[AnyBytes, IO],
        *args: Any,
        **kwargs: Any,
    ) -> 'BaseFile':
        r"""Parses a file object from serialized data.

        Args:
            stream (bytes or bytes IO):
                Serialized data, or a stream to read it from.

        Returns:
            :class:`BaseFile`: Parsed file object.
        """
        ...

    def save(
        self,
        out_path_or_stream: Optional[Union[AnyPath, IO]],
        *args: Any,
        **kwargs: Any,
    ) -> 'BaseFile':
        r"""Saves into a file.

        Args:
            out_path_or_stream (str or bytes IO):
                Path of the file within the filesystem, or byte output stream.
                If ``None``, ``sys.stdout.buffer`` is used.

            args:
                Forwarded to :meth:`serialize`.

            kwargs:
                Forwarded to :meth:`serialize`.

        Returns:
            :class:`BaseFile`: *self*.
        """

        if out_path_or_stream is None:
            out_path_or_stream = sys.stdout.buffer

        if isinstance(out_path_or_stream, io.IOBase):
            return self.serialize(out_path_or_stream, *args, **kwargs)
        else:
            with open(out_path_or_stream, 'wb') as stream:
                return self.serialize(stream, *args, **kwargs)

    def serialize(self, stream: IO, *args: Any, **kwargs: Any) -> 'BaseFile':

        stream.write(self.to_bytes(*args, **kwargs))
        return self

    def set_meta(
        self,
        meta: Mapping[str, Any],
        strict: bool = True,
    ) -> 'BaseFile':
        r"""Sets meta information.

        Args:
            meta (dict):
                Mapping of the *meta* information to set.

            strict (bool):
                Unknown keys raise :class:`KeyError`.
                If false, they are just ignored.

        Returns:
            :class:`BaseFile`: *self*.

        Raises:
            KeyError: Unknown *meta* key.
        """

        for key, value in meta.items():
            if key in self.META_KEYS:
                setattr(self, key, value)
            elif strict:
                raise KeyError(f'unknown meta: {key!r}')
        return self

    @property
    def space(self) -> AddressSpace:
        r""":class:`AddressSpace`: Contents of the file object."""

        return self._space

    @abc.abstractmethod
    def to_bytes(self, *args: Any, **kwargs: Any) -> bytes:
        r"""Serializes the file object.

        Returns:
            bytes: Serialized data.
        """
        ...

    def view_space(self) -> AddressSpace:
        r"""Address space, for reading only.

        Unlike :attr:`space`, stored records are kept, so that the serialized
        output is not regenerated. The caller must not alter the returned
        object.

        Returns:
            :class:`AddressSpace`: Contents of the file object.
        """

        return self._space

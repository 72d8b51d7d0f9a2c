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

r"""Error types.

Every error raised by the core derives from :class:`HexSpaceError`, which is
a :class:`ValueError`, so that callers catching :class:`ValueError` keep
working.

Parsing errors carry the 1-based *line* number of the offending record.
"""

from typing import Optional


class HexSpaceError(ValueError):
    r"""Base class of all the errors raised by :mod:`hexspace`."""


class MalformedRecordError(HexSpaceError):
    r"""Structurally invalid record line.

    Args:
        line (int):
            1-based line number.

        reason (str):
            Short description of the defect.
    """

    def __init__(self, line: int, reason: str = 'malformed record'):

        super().__init__(f'line {line}: {reason}')
        self.line: int = line
        self.reason: str = reason


class ChecksumMismatchError(HexSpaceError):
    r"""Record checksum does not match its contents.

    Args:
        line (int):
            1-based line number.

        expected (int):
            Checksum computed from the record contents.

        actual (int):
            Checksum found within the record line.
    """

    def __init__(self, line: int, expected: int, actual: int):

        super().__init__(f'line {line}: checksum mismatch: '
                         f'expected 0x{expected:02X}, found 0x{actual:02X}')
        self.line: int = line
        self.expected: int = expected
        self.actual: int = actual


class UnsupportedRecordTypeError(HexSpaceError):

    def __init__(self, line: int, code: int):

        super().__init__(f'line {line}: unsupported record type 0x{code:02X}')
        self.line: int = line
        self.code: int = code


class MissingEndOfFileError(HexSpaceError):

    def __init__(self):

        super().__init__('missing end of file record')


class DuplicateStartAddressError(HexSpaceError):

    def __init__(self, line: int):

        super().__init__(f'line {line}: duplicate start address record')
        self.line: int = line


class AddressOverlapError(HexSpaceError):
    r"""Data record overwrites data of a previous record.

    Args:
        line (int):
            1-based line number of the overlapping record.

        address (int):
            First overlapping address.
    """

    def __init__(self, line: int, address: int):

        super().__init__(f'line {line}: data overlap at address 0x{address:08X}')
        self.line: int = line
        self.address: int = address


class AddressOverflowError(HexSpaceError):
    r"""Address outside of the supported domain.

    Args:
        attempted (int):
            The offending address.

        limit (int):
            The domain bound being crossed (``0`` or ``0xFFFFFFFF``).

        index (int):
            Index of the offending source, when merging.
    """

    def __init__(self, attempted: int, limit: int, index: Optional[int] = None):

        text = f'address overflow: 0x{attempted:X} beyond limit 0x{limit:X}'
        if attempted < 0:
            text = f'address overflow: -0x{-attempted:X} beyond limit 0x{limit:X}'
        if index is not None:
            text = f'source #{index}: {text}'
        super().__init__(text)
        self.attempted: int = attempted
        self.limit: int = limit
        self.index: Optional[int] = index


class EmptyRangeError(HexSpaceError):

    def __init__(self, text: str = 'no data and no explicit address range'):

        super().__init__(text)


class SourceIndexError(HexSpaceError, IndexError):
    r"""Invalid merge source at some index."""

    def __init__(self, index: int, reason: str = 'invalid source'):

        super().__init__(f'source #{index}: {reason}')
        self.index: int = index
        self.reason: str = reason


class AddressConflictError(HexSpaceError):
    r"""Merge collision under the strict policy."""

    def __init__(self, address: int, index: int):

        super().__init__(f'source #{index}: address conflict at 0x{address:08X}')
        self.address: int = address
        self.index: int = index


class InvalidAddressError(HexSpaceError, KeyError):
    r"""No data at the requested address."""

    def __init__(self, address: int):

        super().__init__(f'no data at address 0x{address:08X}')
        self.address: int = address

    def __str__(self) -> str:

        return ValueError.__str__(self)

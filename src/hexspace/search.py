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

r"""Pattern search within an address space.

Searches run segment by segment, so a match never spans a hole.
"""

import re
from typing import List
from typing import Union

from .base import AnySource
from .space import AnyBytes
from .space import as_space


def find_all(
    source: AnySource,
    pattern: Union[AnyBytes, str],
) -> List[int]:
    r"""Finds all the occurrences of a byte pattern.

    Overlapping occurrences are all reported.

    Args:
        source (:class:`AddressSpace` or :class:`BaseFile`):
            Address space to search.

        pattern (bytes or str):
            Byte pattern, or ASCII text.

    Returns:
        list of int: Start addresses of the matches, in ascending order.
        Empty if `pattern` is empty.

    Examples:
        >>> from hexspace import AddressSpace
        >>> from hexspace.search import find_all
        >>> space = AddressSpace.from_blocks([(0x10, b'aaa'), (0x14, b'a')])
        >>> find_all(space, b'aa')
        [16, 17]
        >>> find_all(space, 'a')
        [16, 17, 18, 20]
    """

    if isinstance(pattern, str):
        pattern = pattern.encode('ascii')
    pattern = bytes(pattern)
    if not pattern:
        return []

    matches = []
    for segment in as_space(source).segments():
        data = segment.data
        offset = data.find(pattern)
        while offset >= 0:
            matches.append(segment.start + offset)
            offset = data.find(pattern, offset + 1)
    return matches


def find_regex(
    source: AnySource,
    pattern: Union[AnyBytes, str, re.Pattern],
) -> List[int]:
    r"""Finds all the matches of a regular expression.

    Matches do not overlap, as per :func:`re.finditer`.

    Args:
        source (:class:`AddressSpace` or :class:`BaseFile`):
            Address space to search.

        pattern (bytes or str or :class:`re.Pattern`):
            Regular expression over bytes. Text is encoded as ASCII.

    Returns:
        list of int: Start addresses of the matches, in ascending order.

    Raises:
        re.error: Invalid regular expression.

    Examples:
        >>> from hexspace import AddressSpace
        >>> from hexspace.search import find_regex
        >>> space = AddressSpace.from_bytes(b'x77LoL 12ab', 0x1000)
        >>> [hex(a) for a in find_regex(space, r'\d{2}\D{2}')]
        ['0x1001', '0x1007']
    """

    if isinstance(pattern, str):
        pattern = pattern.encode('ascii')
    if isinstance(pattern, (bytes, bytearray, memoryview)):
        pattern = re.compile(bytes(pattern))

    matches = []
    for segment in as_space(source).segments():
        for match in pattern.finditer(segment.data):
            matches.append(segment.start + match.start())
    return matches

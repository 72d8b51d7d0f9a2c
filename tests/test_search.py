import re

import pytest

from hexspace.formats.ihex import IhexFile
from hexspace.search import find_all
from hexspace.search import find_regex
from hexspace.space import AddressSpace


def test_find_all():
    space = AddressSpace.from_blocks([(0x100, b'abcab'), (0x200, b'ab')])
    assert find_all(space, b'ab') == [0x100, 0x103, 0x200]
    assert find_all(space, 'ca') == [0x102]
    assert find_all(space, b'zz') == []


def test_find_all_overlapping():
    space = AddressSpace.from_bytes(b'aaaa', 0x10)
    assert find_all(space, b'aa') == [0x10, 0x11, 0x12]


def test_find_all_no_match_across_holes():
    space = AddressSpace.from_blocks([(0, b'ab'), (3, b'cd')])
    assert find_all(space, b'bc') == []
    assert find_all(space, b'b') == [1]


def test_find_all_empty():
    assert find_all(AddressSpace(), b'a') == []
    assert find_all(AddressSpace.from_bytes(b'abc'), b'') == []


def test_find_all_file_object():
    file = IhexFile.from_bytes(b'\x00\xFF\x00', offset=0xFFFFFFFD)
    assert find_all(file, b'\x00') == [0xFFFFFFFD, 0xFFFFFFFF]


def test_find_file_keeps_records():
    text = b':0400000500000010E7\r\n:020010000102EB\r\n:00000001FF\r\n'
    file = IhexFile.parse(text)
    assert find_all(file, b'\x02') == [0x11]
    assert find_regex(file, rb'\x01') == [0x10]
    assert file.to_bytes() == text


def test_package_exports():
    import hexspace
    assert hexspace.find_all is find_all
    assert hexspace.find_regex is find_regex


def test_find_regex():
    space = AddressSpace.from_bytes(b'x77LoL 12ab', 0x1000)
    assert find_regex(space, r'\d{2}\D{2}') == [0x1001, 0x1007]
    assert find_regex(space, rb'\d{2}\D{2}') == [0x1001, 0x1007]
    assert find_regex(space, re.compile(rb'L')) == [0x1003, 0x1005]


def test_find_regex_per_segment():
    space = AddressSpace.from_blocks([(0x10, b'12'), (0x13, b'34')])
    assert find_regex(space, r'\d+') == [0x10, 0x13]
    assert find_regex(space, r'^\d') == [0x10, 0x13]


def test_find_regex_raises():
    with pytest.raises(re.error):
        find_regex(AddressSpace.from_bytes(b'abc'), '(')

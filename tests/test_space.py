import copy

import pytest
from bytesparse import Memory

from hexspace.errors import AddressOverflowError
from hexspace.errors import InvalidAddressError
from hexspace.space import ADDRESS_MAX
from hexspace.space import AddressSpace
from hexspace.space import Segment
from hexspace.space import as_space
from hexspace.space import check_address
from hexspace.space import check_span


def test_check_address():
    assert check_address(0) == 0
    assert check_address(ADDRESS_MAX) == ADDRESS_MAX

    with pytest.raises(AddressOverflowError) as excinfo:
        check_address(-1)
    assert excinfo.value.attempted == -1
    assert excinfo.value.limit == 0

    with pytest.raises(AddressOverflowError) as excinfo:
        check_address(ADDRESS_MAX + 1)
    assert excinfo.value.attempted == ADDRESS_MAX + 1
    assert excinfo.value.limit == ADDRESS_MAX


def test_check_span():
    assert check_span(ADDRESS_MAX, 1) == ADDRESS_MAX
    assert check_span(0, 0) == 0

    with pytest.raises(AddressOverflowError) as excinfo:
        check_span(0xFFFFFFF0, 0x20)
    assert excinfo.value.attempted == 0x10000000F

    with pytest.raises(AddressOverflowError):
        check_span(-1, 2)


class TestSegment:

    def test___init__(self):
        segment = Segment(0x100, bytearray(b'abc'))
        assert segment.start == 0x100
        assert segment.data == b'abc'
        assert isinstance(segment.data, bytes)
        assert segment.endex == 0x103
        assert segment.endin == 0x102
        assert len(segment) == 3

    def test___eq__(self):
        segment = Segment(1, b'xy')
        assert segment == Segment(1, b'xy')
        assert segment == (1, b'xy')
        assert segment == [1, b'xy']
        assert segment != Segment(2, b'xy')
        assert segment != (1, b'xz')
        assert segment != 'xy'

    def test___hash__(self):
        assert hash(Segment(1, b'xy')) == hash(Segment(1, b'xy'))
        assert len({Segment(1, b'xy'), Segment(1, b'xy')}) == 1

    def test___iter__(self):
        assert list(Segment(0x10, b'\x01\x02')) == [(0x10, 1), (0x11, 2)]

    def test___repr__(self):
        assert repr(Segment(0x10, b'ab')) == 'Segment(start=0x00000010, size=2)'


class TestAddressSpace:

    def test___init__(self):
        space = AddressSpace()
        assert len(space) == 0
        assert space.is_empty()
        assert not space
        assert space.address_range() is None
        assert space.segment_count == 0
        assert list(space.items()) == []

    def test___init___memory(self):
        memory = Memory.from_bytes(b'abc', offset=5)
        space = AddressSpace(memory)
        assert space.memory is memory
        assert space.to_blocks() == [(5, b'abc')]

    def test___contains__(self):
        space = AddressSpace.from_bytes(b'ab', 10)
        assert 10 in space
        assert 11 in space
        assert 12 not in space
        assert 9 not in space

    def test___eq__(self):
        space = AddressSpace.from_items({1: 0xAA, 3: 0xBB})
        assert space == AddressSpace.from_blocks([(1, b'\xAA'), (3, b'\xBB')])
        assert space == {1: 0xAA, 3: 0xBB}
        assert space != {1: 0xAA}
        assert space != AddressSpace()
        assert space != 'abc'

    def test___getitem__(self):
        space = AddressSpace.from_bytes(b'\x7F', 0x20)
        assert space[0x20] == 0x7F

        with pytest.raises(KeyError):
            space[0x21]

        with pytest.raises(InvalidAddressError, match='no data at address 0x00000021'):
            space[0x21]

    def test___iter__(self):
        space = AddressSpace.from_blocks([(2, b'ab'), (5, b'c')])
        assert list(space) == [2, 3, 5]

    def test___repr__(self):
        assert repr(AddressSpace()) == '<AddressSpace empty>'
        space = AddressSpace.from_blocks([(0x10, b'ab'), (0x20, b'c')])
        assert repr(space) == '<AddressSpace 0x00000010..0x00000020 size=3 segments=2>'

    def test_copy(self):
        space = AddressSpace.from_bytes(b'abc', 1)
        clone = space.copy()
        assert clone == space
        clone.set(1, 0)
        assert space.get(1) == ord('a')

        assert copy.copy(space) == space
        assert copy.deepcopy(space) == space
        assert copy.deepcopy(space).memory is not space.memory

    def test_from_blocks(self):
        space = AddressSpace.from_blocks([(0, b'abc'), (2, b'xyz'), (10, b'!')])
        assert space.to_blocks() == [(0, b'abxyz'), (10, b'!')]

        space = AddressSpace.from_blocks([(0, b'ab')], offset=0x100)
        assert space.to_blocks() == [(0x100, b'ab')]

    def test_from_blocks_raises_overflow(self):
        with pytest.raises(AddressOverflowError):
            AddressSpace.from_blocks([(ADDRESS_MAX, b'ab')])

    def test_from_bytes(self):
        assert AddressSpace.from_bytes(b'').is_empty()
        assert AddressSpace.from_bytes(b'ab', 7).to_dict() == {7: 0x61, 8: 0x62}

    def test_from_items(self):
        space = AddressSpace.from_items([(5, 1), (3, 2), (4, 3)])
        assert space.to_blocks() == [(3, b'\x02\x03\x01')]

    def test_from_memory(self):
        memory = Memory.from_blocks([[1, b'a'], [5, b'b']])
        space = AddressSpace.from_memory(memory)
        assert space.to_blocks() == [(1, b'a'), (5, b'b')]
        memory.poke(1, 0)
        assert space.get(1) == ord('a')

    def test_get(self):
        space = AddressSpace.from_bytes(b'\x00\xFF', 0xFFFFFFFE)
        assert space.get(0xFFFFFFFE) == 0x00
        assert space.get(0xFFFFFFFF) == 0xFF
        assert space.get(0) is None

    def test_get_many(self):
        space = AddressSpace.from_blocks([(0, b'ab'), (4, b'c')])
        assert space.get_many([4, 0, 1]) == b'cab'
        assert space.get_many([]) == b''
        assert space.get_many([0, 2]) is None

    def test_items_lazy_and_fresh(self):
        space = AddressSpace.from_blocks([(0x30, b'\x01'), (0x10, b'\x02\x03')])
        first = space.items()
        second = space.items()
        assert next(first) == (0x10, 2)
        assert list(second) == [(0x10, 2), (0x11, 3), (0x30, 1)]
        assert list(first) == [(0x11, 3), (0x30, 1)]

    def test_keys_values(self):
        space = AddressSpace.from_blocks([(0x30, b'\x01'), (0x10, b'\x02\x03')])
        assert list(space.keys()) == [0x10, 0x11, 0x30]
        assert list(space.values()) == [2, 3, 1]

    def test_patch(self):
        space = AddressSpace.from_bytes(b'abc', 0)
        assert space.patch(1, 0x42) == ord('b')
        assert space.to_blocks() == [(0, b'aBc')]

        with pytest.raises(InvalidAddressError):
            space.patch(3, 0)
        assert len(space) == 3

        with pytest.raises(ValueError, match='byte value overflow'):
            space.patch(0, 0x100)

    def test_patch_many(self):
        space = AddressSpace.from_bytes(b'abc', 0)
        space.patch_many([(0, 0x41), (2, 0x43)])
        assert space.to_blocks() == [(0, b'AbC')]

    def test_patch_many_all_or_nothing(self):
        space = AddressSpace.from_bytes(b'abc', 0)
        with pytest.raises(InvalidAddressError) as excinfo:
            space.patch_many([(0, 0x41), (9, 0x43)])
        assert excinfo.value.address == 9
        assert space.to_blocks() == [(0, b'abc')]

    def test_remove(self):
        space = AddressSpace.from_bytes(b'abc', 10)
        assert space.remove(11) == ord('b')
        assert space.to_blocks() == [(10, b'a'), (12, b'c')]
        assert space.segment_count == 2
        assert space.remove(11) is None
        assert len(space) == 2

    def test_remove_range(self):
        space = AddressSpace.from_bytes(b'abcdef', 0)
        space.remove_range(1, 3)
        assert space.to_blocks() == [(0, b'a'), (4, b'ef')]
        space.remove_range(100, 5)
        space.remove_range(0, 0)
        assert space.to_blocks() == [(0, b'a'), (4, b'ef')]

    def test_segments(self):
        space = AddressSpace.from_items({0: 1, 1: 2, 5: 3})
        segments = list(space.segments())
        assert segments == [Segment(0, b'\x01\x02'), Segment(5, b'\x03')]

    def test_set(self):
        space = AddressSpace()
        assert space.set(0x10, 0xAA) is None
        assert space.set(0x10, 0xBB) == 0xAA
        assert space.to_dict() == {0x10: 0xBB}
        assert space.set(ADDRESS_MAX, 1) is None
        assert space.address_range() == (0x10, ADDRESS_MAX)

    def test_set_raises(self):
        space = AddressSpace()
        with pytest.raises(AddressOverflowError):
            space.set(ADDRESS_MAX + 1, 0)
        with pytest.raises(AddressOverflowError):
            space.set(-1, 0)
        with pytest.raises(ValueError, match='byte value overflow'):
            space.set(0, 256)
        with pytest.raises(ValueError, match='byte value overflow'):
            space.set(0, -1)
        assert space.is_empty()

    def test_set_range(self):
        space = AddressSpace.from_bytes(b'abcd', 0)
        space.set_range(2, b'XYZ')
        assert space.to_blocks() == [(0, b'abXYZ')]
        space.set_range(100, b'')
        assert space.to_blocks() == [(0, b'abXYZ')]

    def test_set_range_all_or_nothing(self):
        space = AddressSpace.from_bytes(b'abc', 0)
        with pytest.raises(AddressOverflowError):
            space.set_range(0xFFFFFFF0, bytes(0x20))
        assert space.to_blocks() == [(0, b'abc')]

    def test_sparse_extremes(self):
        space = AddressSpace()
        space.set(0x00000000, 0x01)
        space.set(0xFFFFFFFF, 0x02)
        assert len(space) == 2
        assert space.segment_count == 2
        assert list(space.items()) == [(0, 1), (ADDRESS_MAX, 2)]

    def test_to_blocks(self):
        space = AddressSpace.from_items({3: 0x33, 1: 0x11})
        assert space.to_blocks() == [(1, b'\x11'), (3, b'\x33')]


def test_as_space():
    space = AddressSpace()
    assert as_space(space) is space

    class Holder:
        pass

    holder = Holder()
    holder.space = space
    assert as_space(holder) is space

    with pytest.raises(TypeError, match='not an address space'):
        as_space(b'abc')

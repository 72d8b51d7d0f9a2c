import pytest

from hexspace.errors import AddressConflictError
from hexspace.errors import AddressOverflowError
from hexspace.errors import AddressOverlapError
from hexspace.errors import ChecksumMismatchError
from hexspace.errors import DuplicateStartAddressError
from hexspace.errors import EmptyRangeError
from hexspace.errors import HexSpaceError
from hexspace.errors import InvalidAddressError
from hexspace.errors import MalformedRecordError
from hexspace.errors import MissingEndOfFileError
from hexspace.errors import SourceIndexError
from hexspace.errors import UnsupportedRecordTypeError


def test_hierarchy():
    errors = [
        AddressConflictError(0, 1),
        AddressOverflowError(0x100000000, 0xFFFFFFFF),
        AddressOverlapError(1, 0),
        ChecksumMismatchError(1, 0, 1),
        DuplicateStartAddressError(1),
        EmptyRangeError(),
        InvalidAddressError(0),
        MalformedRecordError(1, 'x'),
        MissingEndOfFileError(),
        SourceIndexError(0),
        UnsupportedRecordTypeError(1, 6),
    ]
    for error in errors:
        assert isinstance(error, HexSpaceError)
        assert isinstance(error, ValueError)

    assert isinstance(SourceIndexError(0), IndexError)
    assert isinstance(InvalidAddressError(0), KeyError)


def test_messages():
    assert str(MalformedRecordError(3, 'record too short')) == 'line 3: record too short'
    assert str(ChecksumMismatchError(2, 0xAA, 0xAB)) == (
        'line 2: checksum mismatch: expected 0xAA, found 0xAB')
    assert str(UnsupportedRecordTypeError(4, 6)) == 'line 4: unsupported record type 0x06'
    assert str(MissingEndOfFileError()) == 'missing end of file record'
    assert str(DuplicateStartAddressError(5)) == 'line 5: duplicate start address record'
    assert str(AddressOverlapError(6, 0x10)) == 'line 6: data overlap at address 0x00000010'
    assert str(EmptyRangeError()) == 'no data and no explicit address range'
    assert str(SourceIndexError(2, 'bad')) == 'source #2: bad'
    assert str(AddressConflictError(0x10, 1)) == 'source #1: address conflict at 0x00000010'
    assert str(InvalidAddressError(0x10)) == 'no data at address 0x00000010'


def test_address_overflow_message():
    error = AddressOverflowError(0x100000000, 0xFFFFFFFF)
    assert str(error) == 'address overflow: 0x100000000 beyond limit 0xFFFFFFFF'
    assert error.index is None

    error = AddressOverflowError(-0x10, 0, index=2)
    assert str(error) == 'source #2: address overflow: -0x10 beyond limit 0x0'
    assert error.index == 2


def test_catch_as_value_error():
    with pytest.raises(ValueError, match='line 1'):
        raise MalformedRecordError(1)

import pytest

from hexspace.utils import hexlify
from hexspace.utils import parse_int
from hexspace.utils import split_source_spec


def test_hexlify():
    assert hexlify(b'') == b''
    assert hexlify(b'\x00\xAB') == b'00AB'
    assert hexlify(b'\x00\xAB', upper=False) == b'00ab'
    assert hexlify(bytearray(b'\x01\x02'), sep=b'-') == b'01-02'
    assert hexlify(memoryview(b'\xFF')) == b'FF'


def test_parse_int_doctest():
    assert parse_int('0x8000') == 32768
    assert parse_int('-0x10k') == -16384
    assert parse_int('FF00h') == 65280
    assert parse_int(None) is None


def test_parse_int_bases():
    assert parse_int('0') == 0
    assert parse_int('123') == 123
    assert parse_int(' +42 ') == 42
    assert parse_int('0b101') == 5
    assert parse_int('0o17') == 15
    assert parse_int('017') == 15
    assert parse_int('0XFF') == 255


def test_parse_int_scales():
    assert parse_int('1k') == 1024
    assert parse_int('2MiB') == 2 * 2**20
    assert parse_int('3kb') == 3000
    assert parse_int('1g') == 2**30


def test_parse_int_objects():
    assert parse_int(5) == 5
    assert parse_int(5.7) == 5


def test_parse_int_raises():
    for value in ('', 'x', '0x', '1.5', '0b1h', 'ff', '12 34'):
        with pytest.raises(ValueError):
            parse_int(value)


def test_split_source_spec():
    assert split_source_spec('app.hex') == ('app.hex', None)
    assert split_source_spec('boot.bin:0x8000') == ('boot.bin', 0x8000)
    assert split_source_spec('boot.bin:-16') == ('boot.bin', -16)
    assert split_source_spec('dir:name/a.hex:4k') == ('dir:name/a.hex', 4096)
    assert split_source_spec('C:\\fw\\boot.bin') == ('C:\\fw\\boot.bin', None)
    assert split_source_spec(':0x10') == (':0x10', None)
    assert split_source_spec('a.hex:') == ('a.hex:', None)

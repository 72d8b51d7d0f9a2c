from pathlib import Path
from typing import cast as _cast

import pytest
from click.core import Command
from click.testing import CliRunner

from hexspace import IhexFile
from hexspace import RawFile
from hexspace import __version__ as _version
from hexspace.__main__ import main as _main
from hexspace.cli import *

main = _cast(Command, main)  # suppress warnings

HEX_TEXT = b':020010000102EB\r\n:00000001FF\r\n'


@pytest.fixture
def tmppath(tmpdir):
    return Path(str(tmpdir))


def write_bytes(path, data):
    with open(str(path), 'wb') as stream:
        stream.write(data)
    return str(path)


def read_bytes(path):
    with open(str(path), 'rb') as stream:
        return stream.read()


def test_main():
    try:
        _main('__main__')
    except SystemExit:
        pass


def test_version():
    runner = CliRunner()
    result = runner.invoke(main, ['--version'])
    assert result.exit_code == 0
    assert result.output.strip() == str(_version)


def test_help():
    commands = ('convert', 'dump', 'find', 'info', 'merge', 'relocate')
    runner = CliRunner()

    for command in commands:
        result = runner.invoke(main, [command, '--help'])
        assert result.exit_code == 0
        assert result.output.strip().startswith('Usage:')


def test_guess_input_type():
    assert guess_input_type('x.hex') is IhexFile
    assert guess_input_type('x.bin') is RawFile
    assert guess_input_type('-', 'ihex') is IhexFile
    assert guess_input_type('x.hex', 'raw') is RawFile

    match = 'standard input requires input format'
    with pytest.raises(ValueError, match=match):
        guess_input_type('-')
    with pytest.raises(ValueError, match=match):
        guess_input_type(None)


def test_guess_output_type():
    assert guess_output_type('y.hex') is IhexFile
    assert guess_output_type('-', 'raw') is RawFile
    assert guess_output_type('-', None, IhexFile) is IhexFile
    assert guess_output_type('y.bin', 'ihex') is IhexFile


def test_format_output_name():
    assert format_output_name(IhexFile) == 'ihex'
    assert format_output_name(RawFile) == 'raw'
    with pytest.raises(ValueError, match='unregistered file type'):
        format_output_name(type('FakeFile', (RawFile,), {}))


def test_based_int_param_fail():
    runner = CliRunner()
    result = runner.invoke(main, 'relocate -n ? -i ihex - -'.split())
    assert result.exit_code == 2
    assert "invalid integer: '?'" in result.output


def test_byte_param_fail():
    runner = CliRunner()
    result = runner.invoke(main, 'convert -v 256 -i ihex - -'.split())
    assert result.exit_code == 2
    assert "invalid byte: '256'" in result.output


def test_missing_input_format():
    commands = ('convert', 'dump', 'find x', 'info', 'relocate -n 0')
    runner = CliRunner()

    for command in commands:
        result = runner.invoke(main, command.split() + ['-'])
        assert result.exit_code == 1
        assert 'standard input requires input format' in result.output


class TestInfo:

    def test_ihex(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['info', path])
        assert result.exit_code == 0
        assert result.output == ('address range: 0x00000010-0x00000011\n'
                                 'total bytes: 2\n'
                                 'segments: 1\n')

    def test_start_address(self, tmppath):
        text = b':020010000102EB\n:0400000500000010E7\n:00000001FF\n'
        path = write_bytes(tmppath / 'data.hex', text)
        result = CliRunner().invoke(main, ['info', path])
        assert result.exit_code == 0
        assert 'start address: 0x00000010 (START_LINEAR_ADDRESS)\n' in result.output

    def test_raw_address(self, tmppath):
        path = write_bytes(tmppath / 'data.bin', b'abc')
        result = CliRunner().invoke(main, ['info', '-a', '0x8000', path])
        assert result.exit_code == 0
        assert result.output.startswith('address range: 0x00008000-0x00008002\n')

    def test_empty(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', b':00000001FF\n')
        result = CliRunner().invoke(main, ['info', path])
        assert result.exit_code == 0
        assert result.output == ('address range: empty\n'
                                 'total bytes: 0\n'
                                 'segments: 0\n')

    def test_stdin(self):
        result = CliRunner().invoke(main, 'info -i ihex -'.split(), input=HEX_TEXT)
        assert result.exit_code == 0
        assert 'total bytes: 2' in result.output

    def test_address_not_raw(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['info', '-a', '0', path])
        assert result.exit_code == 1
        assert 'load address only applies to raw binary input' in result.output

    def test_malformed(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', b':020010000102EC\n:00000001FF\n')
        result = CliRunner().invoke(main, ['info', path])
        assert result.exit_code == 1
        assert 'line 1: checksum mismatch' in result.output

    def test_missing_file(self, tmppath):
        result = CliRunner().invoke(main, ['info', str(tmppath / 'missing.hex')])
        assert result.exit_code == 2


class TestConvert:

    def test_ihex_to_raw(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', b':0100000001FE\n:0100030002FA\n:00000001FF\n')
        path_out = str(tmppath / 'out.bin')
        result = CliRunner().invoke(main, ['convert', path_in, path_out])
        assert result.exit_code == 0
        assert result.output == ''
        assert read_bytes(path_out) == b'\x01\xFF\xFF\x02'

    def test_gap_fill(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', b':0100000001FE\n:0100030002FA\n:00000001FF\n')
        path_out = str(tmppath / 'out.bin')
        result = CliRunner().invoke(main, ['convert', '-v', '0', path_in, path_out])
        assert result.exit_code == 0
        assert read_bytes(path_out) == b'\x01\x00\x00\x02'

    def test_raw_to_ihex(self, tmppath):
        path_in = write_bytes(tmppath / 'in.bin', b'\x01\x02')
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['convert', '-a', '0x100', path_in, path_out])
        assert result.exit_code == 0
        assert read_bytes(path_out) == b':020100000102FA\r\n:00000001FF\r\n'

    def test_width(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', HEX_TEXT)
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['convert', '-w', '1', path_in, path_out])
        assert result.exit_code == 0
        assert read_bytes(path_out) == (b':0100100001EE\r\n'
                                        b':0100110002EC\r\n'
                                        b':00000001FF\r\n')

    def test_stdin_stdout(self):
        args = 'convert -i raw -o ihex -a 0x100 - -'.split()
        result = CliRunner().invoke(main, args, input=b'\x01\x02')
        assert result.exit_code == 0
        assert result.stdout_bytes == b':020100000102FA\r\n:00000001FF\r\n'

    def test_overwrite(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['convert', '-o', 'raw', path])
        assert result.exit_code == 0
        assert read_bytes(path) == b'\x01\x02'

    def test_verbose(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', HEX_TEXT)
        path_out = str(tmppath / 'out.bin')
        result = CliRunner().invoke(main, ['--verbose', 'convert', path_in, path_out])
        assert result.exit_code == 0
        assert 'converted' in result.output

    def test_empty_raw_output(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', b':00000001FF\n')
        path_out = str(tmppath / 'out.bin')
        result = CliRunner().invoke(main, ['convert', path_in, path_out])
        assert result.exit_code == 1
        assert 'no data and no explicit address range' in result.output


class TestRelocate:

    def test_offset(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', HEX_TEXT)
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['relocate', '-n', '0x100', path_in, path_out])
        assert result.exit_code == 0
        assert read_bytes(path_out) == b':020110000102EA\r\n:00000001FF\r\n'

    def test_address(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', HEX_TEXT)
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['relocate', '-a', '0', path_in, path_out])
        assert result.exit_code == 0
        assert read_bytes(path_out) == b':020000000102FB\r\n:00000001FF\r\n'

    def test_keeps_start_address(self, tmppath):
        text = b':020010000102EB\n:0400000500000010E7\n:00000001FF\n'
        path_in = write_bytes(tmppath / 'in.hex', text)
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['relocate', '-a', '0', path_in, path_out])
        assert result.exit_code == 0
        assert IhexFile.load(path_out).startaddr.address == 0x10

    def test_segment_file_beyond_20_bits(self, tmppath):
        text = b':020000021000EC\n:0100100022CD\n:00000001FF\n'
        path_in = write_bytes(tmppath / 'in.hex', text)
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['relocate', '-n', '0x200000', path_in, path_out])
        assert result.exit_code == 0
        assert read_bytes(path_out) == (b':020000040021D9\r\n'
                                        b':0100100022CD\r\n'
                                        b':00000001FF\r\n')

    def test_underflow(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['relocate', '--offset=-0x20', path_in, '-'])
        assert result.exit_code == 1
        assert 'address overflow' in result.output

    def test_usage(self, tmppath):
        path_in = write_bytes(tmppath / 'in.hex', HEX_TEXT)
        runner = CliRunner()

        result = runner.invoke(main, ['relocate', path_in, '-'])
        assert result.exit_code == 2
        assert 'exactly one of --offset and --address is required' in result.output

        result = runner.invoke(main, ['relocate', '-n', '1', '-a', '0', path_in, '-'])
        assert result.exit_code == 2


class TestMerge:

    def test_ihex_and_raw(self, tmppath):
        boot = write_bytes(tmppath / 'boot.hex', HEX_TEXT)
        app = write_bytes(tmppath / 'app.bin', b'\xAA\xBB')
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['merge', path_out, boot, app + ':0x8000'])
        assert result.exit_code == 0
        assert read_bytes(path_out) == (b':020010000102EB\r\n'
                                        b':02800000AABB19\r\n'
                                        b':00000001FF\r\n')

    def test_policies(self, tmppath):
        boot = write_bytes(tmppath / 'boot.hex', HEX_TEXT)
        app = write_bytes(tmppath / 'app.bin', b'\xAA\xBB')
        path_out = str(tmppath / 'out.bin')
        runner = CliRunner()

        result = runner.invoke(main, ['merge', path_out, boot, app + ':16'])
        assert result.exit_code == 0
        assert read_bytes(path_out) == b'\xAA\xBB'

        result = runner.invoke(main, ['merge', '-p', 'first', path_out, boot, app + ':16'])
        assert result.exit_code == 0
        assert read_bytes(path_out) == b'\x01\x02'

        result = runner.invoke(main, ['merge', '-p', 'strict', path_out, boot, app + ':16'])
        assert result.exit_code == 1
        assert 'source #1: address conflict at 0x00000010' in result.output

    def test_stdout(self, tmppath):
        boot = write_bytes(tmppath / 'boot.hex', HEX_TEXT)
        runner = CliRunner()

        result = runner.invoke(main, ['merge', '-', boot])
        assert result.exit_code == 1
        assert 'standard output requires output format' in result.output

        result = runner.invoke(main, ['merge', '-o', 'ihex', '-', boot])
        assert result.exit_code == 0
        assert result.stdout_bytes == HEX_TEXT

    def test_missing_input(self, tmppath):
        path_out = str(tmppath / 'out.hex')
        result = CliRunner().invoke(main, ['merge', path_out, str(tmppath / 'missing.hex')])
        assert result.exit_code == 2

    def test_no_inputs(self, tmppath):
        result = CliRunner().invoke(main, ['merge', str(tmppath / 'out.hex')])
        assert result.exit_code == 2


class TestDump:

    def test_ihex(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['dump', path])
        assert result.exit_code == 0
        assert result.stdout_bytes == b':020010000102EB\n:00000001FF\n'

    def test_raw(self, tmppath):
        path = write_bytes(tmppath / 'data.bin', b'\x01\x02')
        result = CliRunner().invoke(main, ['dump', '-a', '0x10', '-w', '1', path])
        assert result.exit_code == 0
        assert result.stdout_bytes == (b':0100100001EE\n'
                                       b':0100110002EC\n'
                                       b':00000001FF\n')

    def test_color(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['dump', '--color', path])
        assert result.exit_code == 0
        assert b'\x1b[' in result.stdout_bytes


class TestFind:

    def test_literal(self, tmppath):
        path = write_bytes(tmppath / 'data.bin', b'abcabc')
        result = CliRunner().invoke(main, ['find', '-a', '0x100', 'bc', path])
        assert result.exit_code == 0
        assert result.output == '0x00000101\n0x00000104\n'

    def test_hex(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['find', '-x', '0102', path])
        assert result.exit_code == 0
        assert result.output == '0x00000010\n'

    def test_regex(self, tmppath):
        path = write_bytes(tmppath / 'data.bin', b'x77LoL 12ab')
        result = CliRunner().invoke(main, ['find', '-a', '0x1000', '-r', r'\d{2}\D{2}', path])
        assert result.exit_code == 0
        assert result.output == '0x00001001\n0x00001007\n'

    def test_no_match(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        result = CliRunner().invoke(main, ['find', 'zzz', path])
        assert result.exit_code == 0
        assert result.output == ''

    def test_invalid_pattern(self, tmppath):
        path = write_bytes(tmppath / 'data.hex', HEX_TEXT)
        runner = CliRunner()

        result = runner.invoke(main, ['find', '-x', 'zz', path])
        assert result.exit_code == 2
        assert 'PATTERN' in result.output

        result = runner.invoke(main, ['find', '-r', '(', path])
        assert result.exit_code == 2
        assert 'PATTERN' in result.output

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

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m hexspace` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``hexspace.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``hexspace.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import contextlib
import re
from typing import Iterator
from typing import Optional
from typing import Sequence
from typing import Type

import click

from . import __version__
from .base import BaseFile
from .base import MergePolicy
from .base import convert as convert_source
from .base import file_types
from .base import guess_format_name
from .base import info as info_source
from .base import merge as merge_sources
from .base import relocate as relocate_source
from .formats.ihex import IhexFile
from .search import find_all
from .search import find_regex
from .utils import parse_int
from .utils import split_source_spec


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


class ByteIntParamType(click.ParamType):
    name = 'byte'

    def convert(self, value, param, ctx):
        try:
            b = parse_int(value)
            if not 0 <= b <= 255:
                raise ValueError()
            return b
        except ValueError:
            self.fail(f'invalid byte: {value!r}', param, ctx)


class SourceSpecParamType(click.ParamType):
    name = 'source'

    def convert(self, value, param, ctx):
        if isinstance(value, tuple):
            return value
        path, offset = split_source_spec(value)
        if not path:
            self.fail(f'invalid source: {value!r}', param, ctx)
        return path, offset


BASED_INT = BasedIntParamType()
BYTE_INT = ByteIntParamType()
SOURCE_SPEC = SourceSpecParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)

FORMAT_CHOICE = click.Choice(list(sorted(file_types.keys())))

POLICY_CHOICE = click.Choice([policy.value for policy in MergePolicy])


# ----------------------------------------------------------------------------

@contextlib.contextmanager
def reporting_errors() -> Iterator[None]:

    try:
        yield
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc


def echo_progress(message: str) -> None:

    ctx = click.get_current_context()
    if ctx.find_root().params.get('verbose'):
        click.echo(message, err=True)


def guess_input_type(
    input_path: Optional[str],
    input_format: Optional[str] = None,
) -> Type[BaseFile]:

    if input_format:
        input_type = file_types[input_format]
    elif input_path is None or input_path == '-':
        raise ValueError('standard input requires input format')
    else:
        name = guess_format_name(input_path)
        input_type = file_types[name]
    return input_type


def guess_output_type(
    output_path: Optional[str],
    output_format: Optional[str] = None,
    input_type: Optional[Type[BaseFile]] = None,
) -> Type[BaseFile]:

    if output_format:
        output_type = file_types[output_format]
    elif output_path is None or output_path == '-':
        output_type = input_type
    else:
        name = guess_format_name(output_path)
        output_type = file_types[name]
    return output_type


def load_input(
    input_path: Optional[str],
    input_format: Optional[str] = None,
    address: Optional[int] = None,
) -> BaseFile:

    if input_path == '-':
        input_path = None

    input_type = guess_input_type(input_path, input_format)

    if address is None:
        return input_type.load(input_path)
    elif input_type.FLAT:
        return input_type.load(input_path, address=address)
    else:
        raise ValueError('load address only applies to raw binary input')


def save_output(output_path: Optional[str], data: bytes) -> None:

    if output_path is None or output_path == '-':
        stream = click.get_binary_stream('stdout')
        stream.write(data)
        stream.flush()
    else:
        with open(output_path, 'wb') as stream:
            stream.write(data)


def format_output_name(output_type: Type[BaseFile]) -> str:

    for name, file_type in file_types.items():
        if file_type is output_type:
            return name
    raise ValueError(f'unregistered file type: {output_type.__name__}')


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ============================================================================

@click.group()
@click.option('--version', is_flag=True, is_eager=True, expose_value=False,
              callback=print_version, help="""
    Prints the package version and exits.
""")
@click.option('--verbose', is_flag=True, help="""
    Reports progress onto standard error.
""")
def main(verbose: bool) -> None:
    """
    A set of command line utilities for firmware data files.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format.
    Required for the standard input.
""")
@click.option('-a', '--address', type=BASED_INT, help="""
    Load address of raw binary input.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
def info(
    input_format: Optional[str],
    address: Optional[int],
    infile: str,
) -> None:
    r"""Prints a summary of the file contents.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input; input format required.
    """

    with reporting_errors():
        input_file = load_input(infile, input_format, address)
        summary = info_source(input_file)

    span = summary['address_range']
    if span is None:
        click.echo('address range: empty')
    else:
        click.echo(f'address range: 0x{span[0]:08X}-0x{span[1]:08X}')
    click.echo(f'total bytes: {summary["total_bytes"]}')
    click.echo(f'segments: {summary["segment_count"]}')

    startaddr = input_file.get_meta().get('startaddr')
    if startaddr is not None:
        click.echo(f'start address: 0x{startaddr.address:08X} ({startaddr.tag.name})')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format.
    Required for the standard input.
""")
@click.option('-o', '--output-format', type=FORMAT_CHOICE, help="""
    Forces the output file format.
    By default it is that of the input file.
""")
@click.option('-a', '--address', type=BASED_INT, help="""
    Load address of raw binary input.
""")
@click.option('-v', '--value', type=BYTE_INT, default=0xFF, show_default=True, help="""
    Byte value filling holes of raw binary output.
""")
@click.option('-w', '--width', type=BASED_INT, help="""
    Sets the length of the record data field, in bytes.
    By default it is that of the input file.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def convert(
    input_format: Optional[str],
    output_format: Optional[str],
    address: Optional[int],
    value: int,
    width: Optional[int],
    infile: str,
    outfile: str,
) -> None:
    r"""Converts a file to another format.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input; input format required.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to overwrite ``INFILE``.
    """

    if not outfile:
        outfile = infile

    with reporting_errors():
        input_file = load_input(infile, input_format, address)
        output_type = guess_output_type(outfile, output_format, type(input_file))
        output_name = format_output_name(output_type)
        data = convert_source(input_file, output_name, gap_fill=value, maxdatalen=width)
        save_output(outfile, data)

    echo_progress(f'converted {infile} to {output_name}: {len(data)} bytes')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format.
    Required for the standard input.
""")
@click.option('-o', '--output-format', type=FORMAT_CHOICE, help="""
    Forces the output file format.
    By default it is that of the input file.
""")
@click.option('-n', '--offset', type=BASED_INT, help="""
    Signed address offset to apply.
""")
@click.option('-a', '--address', type=BASED_INT, help="""
    Moves data so that its lowest address becomes this one.
""")
@click.option('-v', '--value', type=BYTE_INT, default=0xFF, show_default=True, help="""
    Byte value filling holes of raw binary output.
""")
@click.option('-w', '--width', type=BASED_INT, help="""
    Sets the length of the record data field, in bytes.
    By default it is that of the input file.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
@click.argument('outfile', type=FILE_PATH_OUT, required=False)
def relocate(
    input_format: Optional[str],
    output_format: Optional[str],
    offset: Optional[int],
    address: Optional[int],
    value: int,
    width: Optional[int],
    infile: str,
    outfile: str,
) -> None:
    r"""Moves data addresses.

    Either ``--offset`` or ``--address`` is required.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input; input format required.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    Leave empty to overwrite ``INFILE``.
    """

    if (offset is None) == (address is None):
        raise click.UsageError('exactly one of --offset and --address is required')

    if not outfile:
        outfile = infile

    with reporting_errors():
        input_file = load_input(infile, input_format)
        space = relocate_source(input_file, offset=(offset or 0), start=address)

        moved_file = type(input_file).from_space(space, **input_file.get_meta())
        output_type = guess_output_type(outfile, output_format, type(input_file))
        data = convert_source(moved_file, format_output_name(output_type),
                              gap_fill=value, maxdatalen=width)
        save_output(outfile, data)

    echo_progress(f'relocated {len(space)} bytes')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format for all input files.
    Required for the standard input.
""")
@click.option('-o', '--output-format', type=FORMAT_CHOICE, help="""
    Forces the output file format.
    By default it is guessed from ``OUTFILE``.
""")
@click.option('-p', '--policy', type=POLICY_CHOICE, default=MergePolicy.LAST_WINS.value,
              show_default=True, help="""
    Collision policy: later files win, earlier files win, or collisions are
    errors.
""")
@click.option('-v', '--value', type=BYTE_INT, default=0xFF, show_default=True, help="""
    Byte value filling holes of raw binary output.
""")
@click.option('-w', '--width', type=BASED_INT, help="""
    Sets the length of the record data field, in bytes.
""")
@click.argument('outfile', type=FILE_PATH_OUT)
@click.argument('infiles', type=SOURCE_SPEC, nargs=-1, required=True)
def merge(
    input_format: Optional[str],
    output_format: Optional[str],
    policy: str,
    value: int,
    width: Optional[int],
    outfile: str,
    infiles: Sequence[tuple],
) -> None:
    r"""Merges multiple files.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output; output format required.

    ``INFILES`` is the list of the input files, in merging order.
    Each one is a path, optionally followed by ``:OFFSET`` to move its data
    by a signed address offset (e.g. ``boot.hex app.bin:0x8000``).
    """

    with reporting_errors():
        sources = []
        for path, offset in infiles:
            if path != '-':
                click.Path(exists=True, dir_okay=False).convert(path, None, None)
            input_file = load_input(path, input_format)
            sources.append((input_file, offset))
            echo_progress(f'loaded {path}')

        if output_format:
            output_name = output_format
        elif outfile == '-':
            raise ValueError('standard output requires output format')
        else:
            output_name = guess_format_name(outfile)

        space = merge_sources(sources, policy=policy)
        data = convert_source(space, output_name, gap_fill=value, maxdatalen=width)
        save_output(outfile, data)

    echo_progress(f'merged {len(sources)} files: {len(space)} bytes')


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format.
    Required for the standard input.
""")
@click.option('-a', '--address', type=BASED_INT, help="""
    Load address of raw binary input.
""")
@click.option('-w', '--width', type=BASED_INT, help="""
    Sets the length of the record data field of non-record input, in bytes.
""")
@click.option('--color', is_flag=True, help="""
    Colorizes record fields with ANSI codes.
""")
@click.argument('infile', type=FILE_PATH_IN, required=False)
def dump(
    input_format: Optional[str],
    address: Optional[int],
    width: Optional[int],
    color: bool,
    infile: str,
) -> None:
    r"""Prints Intel HEX records.

    Records of Intel HEX input are printed as they were parsed; any other
    input is converted to Intel HEX first.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input; input format required.
    """

    with reporting_errors():
        input_file = load_input(infile, input_format, address)
        if isinstance(input_file, IhexFile):
            output_file = input_file
        else:
            output_file = IhexFile.convert(input_file)
            if width is not None:
                output_file.maxdatalen = width

        stream = click.get_binary_stream('stdout')
        output_file.print(stream=stream, color=color, end=b'\n')
        stream.flush()


# ----------------------------------------------------------------------------

@main.command()
@click.option('-i', '--input-format', type=FORMAT_CHOICE, help="""
    Forces the input file format.
    Required for the standard input.
""")
@click.option('-a', '--address', type=BASED_INT, help="""
    Load address of raw binary input.
""")
@click.option('-x', '--hex', 'hex_pattern', is_flag=True, help="""
    Reads PATTERN as hexadecimal byte values, instead of ASCII text.
""")
@click.option('-r', '--regex', is_flag=True, help="""
    Reads PATTERN as a regular expression over bytes.
""")
@click.argument('pattern')
@click.argument('infile', type=FILE_PATH_IN, required=False)
def find(
    input_format: Optional[str],
    address: Optional[int],
    hex_pattern: bool,
    regex: bool,
    pattern: str,
    infile: str,
) -> None:
    r"""Prints the addresses where a pattern occurs.

    Each match start address is printed on its own line, in ascending order.
    Literal matches may overlap; regular expression matches do not.
    No match spans a hole.

    ``PATTERN`` is the byte pattern to search.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input; input format required.
    """

    try:
        if hex_pattern:
            needle = bytes.fromhex(pattern)
        else:
            needle = pattern.encode('ascii')
        if regex:
            needle = re.compile(needle)
    except (ValueError, re.error) as exc:
        raise click.BadParameter(str(exc), param_hint='PATTERN') from exc

    with reporting_errors():
        input_file = load_input(infile, input_format, address)
        if regex:
            matches = find_regex(input_file, needle)
        else:
            matches = find_all(input_file, needle)

    for match in matches:
        click.echo(f'0x{match:08X}')

    echo_progress(f'found {len(matches)} matches')

"""CLI interface for recoverymap -- xmp, read-xmp, patch-exif, info subcommands."""

import json
import sys
from pathlib import Path

import click
from PIL import Image

import recoverymap
from recoverymap import log
from recoverymap.cursor import ByteCursor
from recoverymap.errors import MetadataError, RecoveryMapError
from recoverymap.exif import (
    ENTRY_COUNT_POSITION,
    FIRST_ENTRY_POSITION,
    MARKER_TAG,
    patched_length,
    read_directory,
    read_exif_header,
    read_exif_sub_ifd,
    update_exif,
)
from recoverymap.models import (
    Chromaticity,
    GainMapMetadata,
    Hdr10Metadata,
    St2086Metadata,
    TransferFunction,
)
from recoverymap.xmp import XMP_SIGNATURE, generate_xmp, parse_xmp

_JPEG_SOI = b'\xff\xd8'

_TRANSFER_FUNCTIONS = {tf.name.lower(): tf for tf in TransferFunction}


def _is_jpeg(path: Path) -> bool:
    with open(path, 'rb') as f:
        return f.read(2) == _JPEG_SOI


def _jpeg_exif(path: Path):
    """EXIF APP1 payload of a JPEG (starting with "Exif\\0\\0"), or None."""
    with Image.open(path) as im:
        return im.info.get('exif')


def _jpeg_xmp(path: Path):
    """XMP APP1 payload of a JPEG, signature included, or None."""
    with Image.open(path) as im:
        for marker, payload in getattr(im, 'applist', []):
            if marker == 'APP1' and payload.startswith(XMP_SIGNATURE):
                return payload
    return None


def _load_hdr10(path: str) -> Hdr10Metadata:
    """Read HDR10 static metadata from a JSON document.

    Expected keys: max_fall, max_cll and st2086 with max_luminance,
    min_luminance and [x, y] pairs red_primary, green_primary,
    blue_primary, white_point.
    """
    with open(path) as f:
        doc = json.load(f)
    st = doc['st2086']
    return Hdr10Metadata(
        max_fall=int(doc['max_fall']),
        max_cll=int(doc['max_cll']),
        st2086=St2086Metadata(
            max_luminance=float(st['max_luminance']),
            min_luminance=float(st['min_luminance']),
            red_primary=Chromaticity(*map(float, st['red_primary'])),
            green_primary=Chromaticity(*map(float, st['green_primary'])),
            blue_primary=Chromaticity(*map(float, st['blue_primary'])),
            white_point=Chromaticity(*map(float, st['white_point'])),
        ),
    )


def _fail(msg: str):
    click.echo(log.cli_error(f'Error: {msg}'), err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=recoverymap.__version__, prog_name='recoverymap')
@click.option('--no-color', is_flag=True, help='Disable colored output.')
def main(no_color):
    """recoverymap -- JPEG/R gain-map metadata codec.

    Write and read the GContainer/RecoveryMap XMP block and insert the
    recovery map marker into EXIF.
    """
    if no_color:
        log.set_color_enabled(False)


@main.command()
@click.argument('length', type=click.IntRange(min=0))
@click.option('--range-scaling-factor', '-r', type=float, required=True,
              help='Range scaling factor of the recovery map.')
@click.option('--transfer-function', '-t', 'tf',
              type=click.Choice(sorted(_TRANSFER_FUNCTIONS)), default='linear',
              show_default=True, help='Transfer function of the HDR image.')
@click.option('--version', 'map_version', type=int, default=1, show_default=True,
              help='Recovery map metadata version.')
@click.option('--hdr10', type=click.Path(exists=True, dir_okay=False),
              help='JSON file with HDR10 metadata (required for pq).')
@click.option('--payload', is_flag=True,
              help='Prefix the XMP APP1 namespace signature.')
@click.option('--output', '-o', type=click.Path(dir_okay=False),
              help='Write to this file instead of stdout.')
def xmp(length, range_scaling_factor, tf, map_version, hdr10, payload, output):
    """Generate the XMP block for a recovery map of LENGTH bytes."""
    transfer_function = _TRANSFER_FUNCTIONS[tf]
    if transfer_function == TransferFunction.PQ and not hdr10:
        _fail('--hdr10 is required with --transfer-function pq')

    try:
        hdr10_metadata = _load_hdr10(hdr10) if transfer_function == TransferFunction.PQ else None
    except (OSError, KeyError, TypeError, ValueError) as e:
        _fail(f'cannot read HDR10 metadata from {hdr10}: {e}')

    try:
        metadata = GainMapMetadata(
            version=map_version,
            range_scaling_factor=range_scaling_factor,
            transfer_function=transfer_function,
            hdr10_metadata=hdr10_metadata,
        )
    except ValueError as e:
        _fail(str(e))

    text = generate_xmp(length, metadata)
    if not payload and not output:
        click.echo(text)
        return

    data = text.encode('utf-8')
    if payload:
        data = XMP_SIGNATURE + data
    if output:
        Path(output).write_bytes(data)
        click.echo(log.cli_success(f'XMP written to {output} ({len(data)} bytes)'))
    else:
        click.get_binary_stream('stdout').write(data)


@main.command('read-xmp')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--json-out', type=click.Path(), help='Write result as JSON to file.')
@click.option('--log', 'log_path', type=click.Path(), help='Append a log line to file.')
def read_xmp(path, json_out, log_path):
    """Read recovery map parameters from an XMP payload or a JPEG."""
    filepath = Path(path)
    if _is_jpeg(filepath):
        data = _jpeg_xmp(filepath)
        if data is None:
            _fail(f'{filepath.name} has no XMP segment')
    else:
        data = filepath.read_bytes()

    try:
        fields = parse_xmp(data)
    except RecoveryMapError as e:
        msg = f'{filepath.name}: no recovery map metadata ({e})'
        if log_path:
            with open(log_path, 'a') as f:
                f.write(log.log_warn(msg) + '\n')
        click.echo(log.cli_warning(msg))
        sys.exit(1)

    click.echo(log.cli_header(filepath.name))
    click.echo(f'  RangeScalingFactor: {fields.range_scaling_factor!r}')
    click.echo(f'  TransferFunction:   {int(fields.transfer_function)} '
               f'({fields.transfer_function.name})')

    if json_out:
        with open(json_out, 'w') as f:
            json.dump({
                'file': str(filepath),
                'range_scaling_factor': fields.range_scaling_factor,
                'transfer_function': int(fields.transfer_function),
                'transfer_function_name': fields.transfer_function.name,
            }, f, indent=2)
        click.echo(f'Results written to {json_out}')


@main.command('patch-exif')
@click.argument('path', required=False, type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True,
              help='Where to write the patched EXIF payload.')
@click.option('--max-length', type=click.IntRange(min=0),
              help='Capacity of the destination buffer (default: exact fit).')
@click.option('--log', 'log_path', type=click.Path(), help='Append a log line to file.')
def patch_exif(path, output, max_length, log_path):
    """Insert the recovery map marker into an EXIF payload.

    PATH is a raw EXIF payload or a JPEG. Without PATH a minimal EXIF
    payload holding only the marker is written.
    """
    exif = None
    source = 'new payload'
    if path:
        filepath = Path(path)
        source = filepath.name
        exif = _jpeg_exif(filepath) if _is_jpeg(filepath) else filepath.read_bytes()
        if not exif:
            click.echo(log.cli_dim(f'{source} carries no EXIF; writing a new payload'))
    else:
        click.echo(log.cli_info('No source given; writing a new EXIF payload'))

    capacity = max_length if max_length is not None else patched_length(exif)
    dest = ByteCursor(capacity)
    try:
        update_exif(exif, dest)
    except RecoveryMapError as e:
        if log_path:
            with open(log_path, 'a') as f:
                f.write(log.log_error(f'{source}: {e}') + '\n')
        _fail(f'{source}: {e} (status {int(e.status)})')

    Path(output).write_bytes(dest.getvalue())
    msg = f'{source}: marker inserted, {len(dest)} bytes written to {output}'
    if log_path:
        with open(log_path, 'a') as f:
            f.write(log.log_info(msg) + '\n')
    click.echo(log.cli_success(msg))


def _print_entries(entries, indent='  '):
    for entry in entries:
        try:
            where = 'inline' if entry.is_inline else f'offset {entry.value_offset}'
        except MetadataError:
            where = 'unknown format'
        click.echo(f'{indent}0x{entry.tag_id:04x} {entry.tag_name:<24} '
                   f'{entry.format_name:<10} count={entry.count:<6} {where}')


@main.command()
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
def info(path):
    """List the IFD0 and EXIF sub-IFD entries of an EXIF payload or JPEG."""
    filepath = Path(path)
    data = _jpeg_exif(filepath) if _is_jpeg(filepath) else filepath.read_bytes()
    if not data:
        _fail(f'{filepath.name} has no EXIF payload')

    header = read_exif_header(data)
    if header is None:
        _fail(f'{filepath.name} is not an EXIF payload')

    try:
        entries = read_directory(data, ENTRY_COUNT_POSITION, header.big_endian)
        sub_entries = read_exif_sub_ifd(data, header.big_endian, entries)
    except MetadataError as e:
        _fail(f'{filepath.name}: {e}')

    order = 'big-endian (MM)' if header.big_endian else 'little-endian (II)'
    click.echo(log.cli_header(f'{filepath.name}: {len(data)} bytes, {order}'))
    click.echo(log.cli_separator())
    click.echo(log.cli_bold(f'IFD0: {len(entries)} entries'))
    _print_entries(entries)
    if sub_entries is not None:
        click.echo(log.cli_bold(f'EXIF sub-IFD: {len(sub_entries)} entries'))
        _print_entries(sub_entries)

    has_marker = data[FIRST_ENTRY_POSITION:FIRST_ENTRY_POSITION + 2] == MARKER_TAG
    status = 'present' if has_marker else 'absent'
    click.echo(f'\nRecovery map marker: {status}')


if __name__ == '__main__':
    main()

#!/usr/bin/env python3
import contextlib
import sys
import time
from typing import IO, Iterable, Iterator, List, Optional, Tuple

import click

from cxxmangle.context import Context


@click.command()
@click.argument('signatures', nargs=-1)
@click.option('-i', '--input', 'input_file', type=click.File('r'), help='Read one signature per line.')
@click.option('-o', '--output', default='-')
@click.option('-v', '--verbose', count=True)
@click.option('-f', '--output-format', default='symbol', type=click.Choice(['symbol', 'tree']))
def main(
    signatures: Tuple[str, ...], input_file: Optional[IO[str]], output: str, verbose: int, output_format: str
) -> None:
    """Print the Itanium mangled name of each C++ function SIGNATURE.

    With no signatures and no --input, signatures are read from standard input.
    """
    timer = timing if verbose >= 2 else dummy_timing
    context = Context(timer, verbose)

    to_mangle = list(signatures)
    if input_file is not None:
        to_mangle.extend(read_signatures(input_file))
    elif not to_mangle:
        to_mangle.extend(read_signatures(click.get_text_stream('stdin')))

    with click.open_file(output, 'w') as f:
        for signature in to_mangle:
            if output_format == 'tree':
                result = repr(context.parse(signature))
            else:
                result = context.mangle(signature)
            click.echo(result, file=f)


def read_signatures(lines: Iterable[str]) -> List[str]:
    signatures = []
    for line in lines:
        line = line.strip()
        if line and not line.startswith('#'):
            signatures.append(line)
    return signatures


@contextlib.contextmanager
def timing(description: str) -> Iterator[None]:
    t0 = time.time()
    yield
    t1 = time.time()
    dt = (t1 - t0) * 1000
    print(f'[timer] {description} took {dt:4f} ms', file=sys.stderr)


@contextlib.contextmanager
def dummy_timing(description: str) -> Iterator[None]:
    yield


if __name__ == '__main__':
    main()

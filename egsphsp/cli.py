"""
Command line interface for transforming and inspecting .egsphsp files.

    $ egsphsp info beam.egsphsp1
    $ egsphsp rotate beam.egsphsp1 rotated.egsphsp1 --angle 1.5708
    $ egsphsp combine a.egsphsp1 b.egsphsp1 -o ab.egsphsp1
    $ egsphsp sample a.egsphsp1 -o small.egsphsp1 --rate 10 --seed 3
"""

import argparse
import json
import math
import sys
import time
from pathlib import Path
from typing import List, Optional

import numpy as np
from tqdm import tqdm

from egsphsp import __version__
from egsphsp.config import load_config, setup_logging
from egsphsp.errors import EGSError
from egsphsp.io.reader import PHSPReader
from egsphsp.operations.combine import combine
from egsphsp.operations.sample import sample
from egsphsp.operations.transform import rotate
from egsphsp.verify import compare_files

SHOUT_OUTPUT = 'tns_output.egsphsp1'

PRINT_FIELDS = {
    'weight': lambda r: r.weight,
    'energy': lambda r: r.energy,
    'x': lambda r: r.x_cm,
    'y': lambda r: r.y_cm,
    'x_cos': lambda r: r.x_cos,
    'y_cos': lambda r: r.y_cos,
    'produced': lambda r: r.bremsstrahlung_or_annihilation,
    'charged': lambda r: r.charged,
    'r': lambda r: r.radius,
}


def parse_angle(text: str) -> float:
    """Parse an angle, allowing '(-1.5)' so negative values survive shells."""
    return float(text.strip().lstrip('(').rstrip(')').strip())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='egsphsp', description='Transform and inspect .egsphsp files')
    parser.add_argument('--version', action='version', version=__version__)
    parser.add_argument('--config', type=Path,
                        help='YAML configuration file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='debug logging')
    subparsers = parser.add_subparsers(dest='command', required=True)

    info = subparsers.add_parser(
        'info', help='Basic information on phase space file')
    info.add_argument('input')
    info.add_argument('--format', choices=['human', 'json'], default='human',
                      help='Output information in json or human format')

    show = subparsers.add_parser(
        'print', help='Print the specified fields in the specified order '
                      'for n (or all) records')
    show.add_argument('input')
    show.add_argument('-f', '--field', dest='fields', nargs='+',
                      required=True, choices=list(PRINT_FIELDS))
    show.add_argument('-n', '--number', type=int, default=10,
                      help='number of records, 0 for all')

    rot = subparsers.add_parser(
        'rotate', help='Rotate by --angle radians counter clockwise around '
                       'z axis')
    rot.add_argument('input', help='Phase space file')
    rot.add_argument('output', nargs='?', help='Output file')
    rot.add_argument('-a', '--angle', type=parse_angle, required=True,
                     help='Counter clockwise angle in radians to rotate '
                          'around Z axis')
    rot.add_argument('-i', '--in-place', action='store_true',
                     help='Transform input file in-place')

    twist = subparsers.add_parser(
        'twist', help='Rotate r times by a random increment')
    twist.add_argument('input', help='Input phsp file')
    twist.add_argument('-r', '--iterations', type=int, required=True,
                       help='Number of iterations')
    twist.add_argument('--seed', type=int, default=None,
                       help='Seed for the random angles')
    twist.add_argument('--output-dir', type=Path, default=Path('.'),
                       help='Directory for the numbered output files')

    comb = subparsers.add_parser(
        'combine', help='Combine phase space from one or more input files '
                        'into outputfile')
    comb.add_argument('input', nargs='+')
    comb.add_argument('-o', '--output', required=True)
    comb.add_argument('-d', '--delete', action='store_true',
                      help='Delete input files as they are used '
                           '(no going back!)')

    shout = subparsers.add_parser(
        'shout', help='Combine phase space files from twist algorithm')
    shout.add_argument('input', nargs='+')
    shout.add_argument('-o', '--output', default=SHOUT_OUTPUT)

    samp = subparsers.add_parser(
        'sample', help='Sample particles from phase space - does not '
                       'adjust weights')
    samp.add_argument('input', nargs='+')
    samp.add_argument('-o', '--output', required=True)
    samp.add_argument('--rate', type=int, default=None,
                      help='Inverse sample rate - 10 means take roughly 1 '
                           'out of every 10 particles')
    samp.add_argument('--seed', type=int, default=None,
                      help='Seed as an unsigned integer')

    cmp_ = subparsers.add_parser(
        'compare', help='Check that two files hold similar particles')
    cmp_.add_argument('first')
    cmp_.add_argument('second')

    return parser


# ============================================================================
# Subcommands
# ============================================================================

def cmd_info(args, config):
    with PHSPReader.open(args.input, check_length=False) as reader:
        header = reader.header
    if args.format == 'json':
        print(json.dumps(header.to_dict(), indent=4))
    else:
        print(f"Total particles: {header.total_particles}")
        print(f"Total photons: {header.total_photons}")
        print(f"Total electrons/positrons: {header.total_charged}")
        print(f"Maximum energy: {header.max_energy:.4f} MeV")
        print(f"Minimum energy: {header.min_energy:.4f} MeV")
        print(f"Incident particles from source: "
              f"{header.total_particles_in_source:.1f}")


def cmd_print(args, config):
    print(''.join(f"{field:<16}" for field in args.fields))
    with PHSPReader.open(args.input, check_length=False,
                         buffer_size=config['io']['buffer_size']) as reader:
        for index, record in enumerate(reader):
            if args.number and index >= args.number:
                break
            print(''.join(f"{str(PRINT_FIELDS[field](record)):<16}"
                          for field in args.fields))


def cmd_rotate(args, config):
    if args.in_place:
        output = args.input
    elif args.output is None:
        raise ValueError("An output file is required unless --in-place is set")
    else:
        output = args.output
    rotate(args.input, output, args.angle,
           buffer_size=config['io']['buffer_size'],
           strict_length=config['io']['strict_length'])


def cmd_twist(args, config):
    rng = np.random.default_rng(args.seed)
    args.output_dir.mkdir(parents=True, exist_ok=True)
    for count in tqdm(range(1, args.iterations + 1), desc='Twisting',
                      unit='file'):
        angle = 2.0 * math.pi * rng.random()
        tqdm.write(f"Random angle is {angle} radians")
        rotate(args.input, args.output_dir / f"{count}.egsphsp", angle,
               buffer_size=config['io']['buffer_size'],
               strict_length=config['io']['strict_length'])


def cmd_combine(args, config):
    combine(args.input, args.output, delete=args.delete,
            buffer_size=config['io']['buffer_size'],
            strict_length=config['io']['strict_length'])


def cmd_shout(args, config):
    combine(args.input, args.output, delete=True,
            buffer_size=config['io']['buffer_size'],
            strict_length=config['io']['strict_length'])


def cmd_sample(args, config):
    rate = args.rate if args.rate is not None else config['sample']['rate']
    seed = args.seed if args.seed is not None else config['sample']['seed']
    sample(args.input, args.output, rate=rate, seed=seed,
           buffer_size=config['io']['buffer_size'],
           strict_length=config['io']['strict_length'])


def cmd_compare(args, config):
    compared = compare_files(args.first, args.second)
    print(f"Files match ({compared} records)")


COMMANDS = {
    'info': cmd_info,
    'print': cmd_print,
    'rotate': cmd_rotate,
    'twist': cmd_twist,
    'combine': cmd_combine,
    'shout': cmd_shout,
    'sample': cmd_sample,
    'compare': cmd_compare,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    start = time.process_time()
    try:
        config = load_config(args.config)
        setup_logging(config, verbose=args.verbose)
        COMMANDS[args.command](args, config)
    except (EGSError, OSError, ValueError) as err:
        print(f"Error: {err}", file=sys.stderr)
        return 1
    if args.command in ('twist', 'combine', 'shout', 'sample'):
        print(f"CPU time: {time.process_time() - start:.3f}s",
              file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())

import argparse
import os
import sys
from pathlib import Path

from loguru import logger

from .config import DEFAULT_CHUNK_SIZE, DEFAULT_SLEEP_SECS, UNKNOWN_LAYOUT_POLICIES, Config, Layout
from .inputs import read_species_batches
from .log import setup_logging
from .pipeline import Pipeline
from .runinfo import EntrezRunInfoClient
from .tools import SraToolkit
from .utils import SraReadsError, check_dependencies

EPILOG = """\
Input file format, one taxon per line:
  <species_name>,SRA_ID1,SRA_ID2,SRA_ID3,...
SRA IDs on a line must be either all RUNs (SRR, ERR, DRR) or all
EXPERIMENTs (SRX, ERX, DRX).

Example:
  sra-reads -i species_accessions.txt -o results --chunk-size 100 --sleep-secs 2
"""


def positive_int(value):
    number = int(value)
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def non_negative_int(value):
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return number


def build_parser():
    parser = argparse.ArgumentParser(
        prog='sra-reads',
        description='Download SRA runs per species and convert them to FASTQ',
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('-i', '--input', required=True,
                        help='Input file with one species and its SRA IDs per line')
    parser.add_argument('-o', '--outdir', default=os.getcwd(),
                        help='Output directory (default: current dir)')
    parser.add_argument('-c', '--chunk-size', type=positive_int, default=DEFAULT_CHUNK_SIZE,
                        help=f'Number of SRA IDs per metadata query (default: {DEFAULT_CHUNK_SIZE})')
    parser.add_argument('-w', '--sleep-secs', type=non_negative_int, default=DEFAULT_SLEEP_SECS,
                        help=f'Seconds to sleep between metadata chunks (default: {DEFAULT_SLEEP_SECS})')
    parser.add_argument('-l', '--layout', type=str.upper, choices=['SINGLE', 'PAIRED'],
                        help='Force layout for all runs; RUN batches then skip metadata fetching')
    parser.add_argument('--unknown-layout', choices=UNKNOWN_LAYOUT_POLICIES, default='single',
                        help='How to convert runs whose layout could not be determined (default: single)')
    parser.add_argument('-e', '--email', default=os.environ.get('NCBI_EMAIL'),
                        help='Email for NCBI Entrez (default: $NCBI_EMAIL)')
    parser.add_argument('--api-key', default=os.environ.get('NCBI_API_KEY'),
                        help='NCBI API key (default: $NCBI_API_KEY)')
    parser.add_argument('--cleanup', action='store_true',
                        help='Remove per-species working directories when done')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log external tool output')
    return parser


def config_from_args(args):
    return Config(
        outdir=Path(args.outdir),
        chunk_size=args.chunk_size,
        sleep_secs=args.sleep_secs,
        forced_layout=Layout(args.layout) if args.layout else None,
        unknown_layout=args.unknown_layout,
        email=args.email,
        api_key=args.api_key,
        cleanup=args.cleanup,
    )


def run(args, toolkit=None, runinfo_client=None):
    config = config_from_args(args)
    if not Path(args.input).is_file():
        raise SraReadsError(f"input file '{args.input}' does not exist.")

    if toolkit is None:
        if not check_dependencies():
            raise SraReadsError("Required external tools are missing.")
        logger.info("Checked system dependencies")
        toolkit = SraToolkit()
    if runinfo_client is None:
        runinfo_client = EntrezRunInfoClient(config.email, config.api_key)

    pipeline = Pipeline(config, toolkit, runinfo_client)
    return pipeline.run(read_species_batches(args.input))


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    parser = build_parser()
    setup_logging()

    if not argv:
        parser.print_usage(sys.stderr)
        logger.info(f"Try '{parser.prog} --help' for more information.")
        sys.exit(1)

    args = parser.parse_args(argv)
    if args.verbose:
        setup_logging(verbose=True)

    try:
        run(args)
    except SraReadsError as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == '__main__':
    main()

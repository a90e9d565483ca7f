"""
Reading species batch files and classifying their accessions.

Each non-blank line that does not start with '#' describes one species:

    <species name>,ACC1,ACC2,ACC3,...

Accessions on a line must be either all runs (SRR, ERR, DRR) or all
experiments (SRX, ERX, DRX).
"""

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Sequence

from .utils import SraReadsError

RUN_PREFIXES = ('SRR', 'ERR', 'DRR')
EXPERIMENT_PREFIXES = ('SRX', 'ERX', 'DRX')


class BatchMode(str, Enum):
    RUN = 'RUN'
    EXPERIMENT = 'EXPERIMENT'


@dataclass(frozen=True)
class SpeciesBatch:
    name: str
    accessions: List[str]


def read_species_batches(path) -> Iterator[SpeciesBatch]:
    """Yield one SpeciesBatch per species line of ``path``"""
    path = Path(path)
    if not path.is_file():
        raise SraReadsError(f"input file '{path}' does not exist.")

    with open(path, 'r') as f:
        for line in f:
            line = line.rstrip('\r\n')
            if not line.strip() or line.startswith('#'):
                continue

            fields = line.split(',')
            accessions = [re.sub(r'\s+', '', field) for field in fields[1:]]
            yield SpeciesBatch(
                name=fields[0],
                accessions=[acc for acc in accessions if acc],
            )


def accession_mode(accession):
    """Return the BatchMode matching the accession prefix, or None"""
    if accession.startswith(RUN_PREFIXES):
        return BatchMode.RUN
    if accession.startswith(EXPERIMENT_PREFIXES):
        return BatchMode.EXPERIMENT
    return None


def classify_accessions(accessions: Sequence[str]) -> BatchMode:
    """
    Decide the batch mode from the first accession and check that every
    other accession has the same type.
    """
    if not accessions:
        raise SraReadsError("No SRA IDs given for species.")

    first = accessions[0]
    mode = accession_mode(first)
    if mode is None:
        raise SraReadsError(f"First SRA ID '{first}' is neither RUN nor EXPERIMENT.")

    for acc in accessions:
        if accession_mode(acc) is not mode:
            raise SraReadsError(f"Expected {mode.value} prefix but found: {acc}")

    return mode

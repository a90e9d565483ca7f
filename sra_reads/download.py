import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from loguru import logger

from .config import Layout


@dataclass(frozen=True)
class DownloadUnit:
    run_id: str
    layout: Layout
    species: str
    experiment_id: Optional[str] = None

    def output_stem(self):
        parts = [self.species, self.experiment_id, self.run_id]
        return '_'.join(part for part in parts if part)


def conversion_layout(layout, policy):
    """
    Layout to convert with, after applying the unknown-layout policy.
    Returns None when the run should be skipped.
    """
    if layout is not Layout.UNKNOWN:
        return layout
    if policy == 'paired':
        return Layout.PAIRED
    if policy == 'single':
        return Layout.SINGLE
    return None


def fastq_renames(unit, layout, species_dir, outdir):
    """(produced file, final file) pairs for a converted run"""
    species_dir, outdir = Path(species_dir), Path(outdir)
    stem = unit.output_stem()
    if layout is Layout.PAIRED:
        return [(species_dir / f"{unit.run_id}_{mate}.fastq", outdir / f"{stem}_{mate}.fastq")
                for mate in (1, 2)]
    return [(species_dir / f"{unit.run_id}.fastq", outdir / f"{stem}.fastq")]


class RunDownloader:
    """prefetch + fasterq-dump + rename for single runs"""

    def __init__(self, toolkit, config):
        self.toolkit = toolkit
        self.config = config

    def download(self, unit: DownloadUnit, species_dir) -> List[Path]:
        """Returns the FASTQ files written for ``unit``, empty if the run was skipped"""
        species_dir = Path(species_dir)
        run_id = unit.run_id

        layout = conversion_layout(unit.layout, self.config.unknown_layout)
        if layout is None:
            logger.warning(f"   Layout of {run_id} is unknown. Skipping...")
            return []
        if layout is not unit.layout:
            logger.warning(f"   Layout of {run_id} is unknown, converting as {layout.value}")

        logger.info("   Downloading .sra with prefetch...")
        result = self.toolkit.prefetch(run_id, species_dir)
        if not result.ok:
            logger.warning(f"   Prefetch failed for {run_id} ({result.diagnostic()}). Skipping...")
            return []

        sra_path = species_dir / run_id
        if not sra_path.is_dir():
            logger.warning(f"   SRA directory not found for {run_id}. Skipping...")
            return []

        logger.info("   Converting to FASTQ...")
        result = self.toolkit.fasterq_dump(sra_path, species_dir,
                                           split_files=layout is Layout.PAIRED)
        if not result.ok:
            logger.warning(f"   fasterq-dump failed for {run_id} ({result.diagnostic()}). Skipping...")
            return []

        written = []
        for produced, final in fastq_renames(unit, layout, species_dir, self.config.outdir):
            try:
                shutil.move(str(produced), str(final))
            except OSError as e:
                logger.warning(f"   Could not move {produced.name} to {final}: {e}")
                continue
            written.append(final)

        logger.info(f"   [OK] Finished {run_id}")
        return written

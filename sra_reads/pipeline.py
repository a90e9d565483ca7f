import shutil
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from loguru import logger

from .download import DownloadUnit, RunDownloader
from .inputs import BatchMode, classify_accessions
from .runinfo import (RunInfoFetcher, RunInfoTable, experiment_runs,
                      needs_runinfo, resolve_run_layout)
from .utils import SraReadsError, sanitize_name


@dataclass
class SpeciesSummary:
    name: str
    converted: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    outputs: List[Path] = field(default_factory=list)


class Pipeline:
    """
    Drives one species at a time through classification, runinfo retrieval
    and per-run download/conversion.
    """

    def __init__(self, config, toolkit, runinfo_client, sleep=time.sleep):
        self.config = config
        self.fetcher = RunInfoFetcher(runinfo_client, config, sleep=sleep)
        self.downloader = RunDownloader(toolkit, config)

    def run(self, batches):
        Path(self.config.outdir).mkdir(parents=True, exist_ok=True)
        summaries = []
        for batch in batches:
            summaries.append(self.process_species(batch))

        total = sum(len(s.converted) for s in summaries)
        skipped = sum(len(s.skipped) for s in summaries)
        logger.info(f"Processing complete: {total} run(s) converted, {skipped} skipped. "
                    f"Outputs are in '{self.config.outdir}'.")
        return summaries

    def process_species(self, batch):
        species = sanitize_name(batch.name)
        if not species:
            raise SraReadsError(f"Species name '{batch.name}' has no alphanumeric characters.")
        species_dir = Path(self.config.outdir) / species
        species_dir.mkdir(parents=True, exist_ok=True)

        logger.info("===========================================================")
        logger.info(f"Processing species: {batch.name}")
        logger.info(f"Output dir:         {species_dir}")
        logger.info(f"SRA IDs:            {' '.join(batch.accessions)}")

        mode = classify_accessions(batch.accessions)

        table = None
        if needs_runinfo(mode, self.config):
            table = RunInfoTable(species_dir / f"tmp_runinfo_{species}.csv")
            self.fetcher.fetch(batch.accessions, table, species_dir / 'error_runinfo.log')
        else:
            logger.info(f"The user has forced the layout to be "
                        f"{self.config.forced_layout.value} and it is RUN mode")

        summary = SpeciesSummary(batch.name)
        if mode is BatchMode.RUN:
            self._run_loop(batch, species, species_dir, table, summary)
        else:
            self._experiment_loop(batch, species, species_dir, table, summary)

        logger.info(f"Done with {batch.name}")
        if self.config.cleanup:
            logger.info(f"Removing intermediate taxon directory: {species_dir}")
            try:
                shutil.rmtree(species_dir)
            except OSError as e:
                logger.warning(f"Could not remove {species_dir}: {e}")
        return summary

    def _run_loop(self, batch, species, species_dir, table, summary):
        logger.info("RUN mode: each accession is already a RUN (SRR/ERR/DRR).")
        for acc in batch.accessions:
            layout = resolve_run_layout(acc, table, self.config)
            logger.info("---------------------------------------------------")
            logger.info(f" SRA ID (run): {acc}")
            logger.info(f" Layout:       {layout.value}")
            self._download(DownloadUnit(acc, layout, species), species_dir, summary)

    def _experiment_loop(self, batch, species, species_dir, table, summary):
        logger.info("EXPERIMENT mode: each accession can map to multiple RUNs.")
        for exp_id in batch.accessions:
            logger.info("---------------------------------------------------")
            logger.info(f" Experiment: {exp_id}")

            runs = experiment_runs(exp_id, table, self.config)
            if not runs:
                logger.warning(f"  No runs found for experiment '{exp_id}' in {table.path}.")
                continue

            for run_id, layout in runs:
                logger.info(f"   => Found RUN: {run_id}")
                logger.info(f"      Layout:    {layout.value}")
                self._download(DownloadUnit(run_id, layout, species, exp_id), species_dir, summary)

    def _download(self, unit, species_dir, summary):
        outputs = self.downloader.download(unit, species_dir)
        if outputs:
            summary.converted.append(unit.run_id)
            summary.outputs.extend(outputs)
        else:
            summary.skipped.append(unit.run_id)

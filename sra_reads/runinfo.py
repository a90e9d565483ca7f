"""
Run metadata ("runinfo") retrieval from NCBI and layout resolution.

Runinfo is the CSV report produced by ``efetch -db sra -format runinfo``.
The columns used here are Run (1), Experiment (11) and LibraryLayout (16).
"""

import csv
import http.client
import time
from pathlib import Path

from Bio import Entrez
from loguru import logger

from .config import Layout
from .inputs import BatchMode
from .utils import chunked

RUN_COLUMN = 0
EXPERIMENT_COLUMN = 10
LAYOUT_COLUMN = 15

# efetch returns at most this many records per request
RUNINFO_PAGE_SIZE = 10000

FETCH_ERRORS = (OSError, RuntimeError, ValueError, http.client.HTTPException)


class EntrezRunInfoClient:
    """esearch + efetch(runinfo) against the SRA database"""

    def __init__(self, email=None, api_key=None):
        if email:
            Entrez.email = email
        if api_key:
            Entrez.api_key = api_key

    def fetch_runinfo(self, query):
        handle = Entrez.esearch(db='sra', term=query, usehistory='y', retmax=0)
        record = Entrez.read(handle)
        handle.close()

        count = int(record['Count'])
        if count == 0:
            return ''

        pages = []
        for retstart in range(0, count, RUNINFO_PAGE_SIZE):
            handle = Entrez.efetch(
                db='sra',
                rettype='runinfo',
                retmode='text',
                webenv=record['WebEnv'],
                query_key=record['QueryKey'],
                retstart=retstart,
                retmax=RUNINFO_PAGE_SIZE,
            )
            data = handle.read()
            handle.close()
            if isinstance(data, bytes):
                data = data.decode('utf-8')
            pages.append(data)
        return ''.join(pages)


class RunInfoTable:
    """Append-only runinfo CSV for one species"""

    def __init__(self, path):
        self.path = Path(path)

    def reset(self):
        self.path.write_text('')

    def append(self, text):
        if not text:
            return
        if not text.endswith('\n'):
            text += '\n'
        with open(self.path, 'a') as f:
            f.write(text)

    def rows(self):
        if not self.path.exists():
            return []
        with open(self.path, 'r', newline='') as f:
            return [row for row in csv.reader(f) if row]

    def find_run(self, run_id):
        """First row whose Run column is ``run_id``, or None"""
        for row in self.rows():
            if row[RUN_COLUMN] == run_id:
                return row
        return None

    def find_experiment(self, experiment_id):
        """All rows whose Experiment column is ``experiment_id``, in table order"""
        return [row for row in self.rows()
                if len(row) > EXPERIMENT_COLUMN and row[EXPERIMENT_COLUMN] == experiment_id]


def row_layout(row):
    if row is None or len(row) <= LAYOUT_COLUMN:
        return Layout.UNKNOWN
    return Layout.from_text(row[LAYOUT_COLUMN])


def resolve_run_layout(run_id, table, config):
    """Forced layout if any, else the LibraryLayout of the run's runinfo row"""
    if config.forced_layout:
        return config.forced_layout
    if table is None:
        return Layout.UNKNOWN
    return row_layout(table.find_run(run_id))


def experiment_runs(experiment_id, table, config):
    """List of (run_id, layout) for every run of an experiment"""
    runs = []
    for row in table.find_experiment(experiment_id):
        layout = config.forced_layout or row_layout(row)
        runs.append((row[RUN_COLUMN], layout))
    return runs


def needs_runinfo(mode, config):
    """Runinfo is only unnecessary for run batches with a forced layout"""
    return config.forced_layout is None or mode is BatchMode.EXPERIMENT


class RunInfoFetcher:
    def __init__(self, client, config, sleep=time.sleep):
        self.client = client
        self.config = config
        self.sleep = sleep

    def fetch(self, accessions, table, error_log):
        """
        Query runinfo for ``accessions`` in chunks and append the results to
        ``table``. A failed chunk is logged and recorded in ``error_log``;
        the remaining chunks are still fetched.

        Returns the number of chunks that failed.
        """
        table.reset()
        chunks = list(chunked(accessions, self.config.chunk_size))
        failures = 0

        logger.info("Getting metadata for SRA IDs CHUNKS")
        for number, chunk in enumerate(chunks, start=1):
            query = ' OR '.join(chunk)
            logger.info(f"  [CHUNK {number}/{len(chunks)}] Acc: {' '.join(chunk)}")
            try:
                text = self.client.fetch_runinfo(query)
            except FETCH_ERRORS as e:
                failures += 1
                logger.error(f"  Runinfo query failed for chunk {number}: {e}")
                with open(error_log, 'a') as f:
                    f.write(f"[chunk {number}] {query}\t{type(e).__name__}: {e}\n")
            else:
                table.append(text)

            if number < len(chunks):
                logger.info(f"  Sleeping {self.config.sleep_secs} second(s)...")
                self.sleep(self.config.sleep_secs)

        return failures

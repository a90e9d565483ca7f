"""Batch download of SRA runs and conversion to FASTQ, grouped by species."""

__version__ = "0.1.0"

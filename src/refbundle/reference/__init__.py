"""Genome reference retrieval and per-sequence splitting."""

from refbundle.reference.fetch import (
    download_from_ensembl,
    fetch_genome,
    fetch_gtf,
    strip_gtf_header,
)
from refbundle.reference.split import split_fasta, split_genome, strip_header

__all__ = [
    "download_from_ensembl",
    "fetch_genome",
    "fetch_gtf",
    "strip_gtf_header",
    "split_fasta",
    "split_genome",
    "strip_header",
]

"""Gene, transcript and ortholog tables from BioMart."""

from refbundle.annotation.models import (
    BiomartTable,
    GENES_TABLE,
    TRANSCRIPTS_TABLE,
    ortholog_attributes,
)
from refbundle.annotation.fetch import build_ortholog_query, build_query_xml, fetch_table
from refbundle.annotation.transform import (
    filter_by_primary_assembly,
    parse_biomart_tsv,
    reconcile_table,
    sequence_ids,
)
from refbundle.annotation.load import save_table, write_tsv

__all__ = [
    "BiomartTable",
    "GENES_TABLE",
    "TRANSCRIPTS_TABLE",
    "ortholog_attributes",
    "build_ortholog_query",
    "build_query_xml",
    "fetch_table",
    "filter_by_primary_assembly",
    "parse_biomart_tsv",
    "reconcile_table",
    "sequence_ids",
    "save_table",
    "write_tsv",
]

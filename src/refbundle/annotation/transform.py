"""Reconcile BioMart annotation tables with the split genome.

Ensembl BioMart lists genes on every sequence of an assembly, including patch
and haplotype sequences that are absent from the FASTA that was indexed.
Records are kept only if their chromosome is one of the per-sequence files
written by the splitter.
"""

from pathlib import Path

import polars as pl
import structlog

from refbundle.annotation.models import BiomartTable
from refbundle.errors import AnnotationMismatch
from refbundle.reference.split import FASTA_SUFFIX

logger = structlog.get_logger()


def sequence_ids(sequence_dir: Path) -> set[str]:
    """Identifiers of the per-sequence FASTA files in a directory.

    Args:
        sequence_dir: Directory written by the splitter

    Returns:
        File names with the ``.fa`` extension removed
    """
    return {
        path.name[: -len(FASTA_SUFFIX)]
        for path in Path(sequence_dir).glob(f"*{FASTA_SUFFIX}")
    }


def _split_record(line: str, n_columns: int, line_number: int) -> list[str]:
    fields = line.split("\t")
    if len(fields) != n_columns:
        raise AnnotationMismatch(
            f"line {line_number}: expected {n_columns} fields, got {len(fields)}"
        )
    return fields


def parse_biomart_tsv(text: str, columns: tuple[str, ...] | list[str]) -> pl.DataFrame:
    """Parse a header-less BioMart TSV response into a string-typed DataFrame.

    All values are kept as strings exactly as received ("01" stays "01",
    empty fields stay empty). Records with the wrong number of fields are
    logged and dropped.

    Args:
        text: Response body
        columns: Column names, one per requested attribute

    Returns:
        DataFrame with one String column per attribute, in input order
    """
    columns = list(columns)
    rows: list[list[str]] = []
    dropped = 0

    # CRLF responses parse the same as LF ones
    for line_number, line in enumerate(text.split("\n"), start=1):
        line = line.removesuffix("\r")
        if not line:
            continue
        try:
            rows.append(_split_record(line, len(columns), line_number))
        except AnnotationMismatch as e:
            dropped += 1
            logger.warning("annotation_record_dropped", reason=str(e))

    schema = {column: pl.String for column in columns}
    if not rows:
        df = pl.DataFrame(schema=schema)
    else:
        df = pl.DataFrame(rows, schema=schema, orient="row")

    logger.info("biomart_tsv_parsed", row_count=df.height, dropped=dropped)
    return df


def filter_by_primary_assembly(
    records: pl.DataFrame,
    sequence_identity_set: set[str],
    chromosome_column: str = "chromosome_name",
) -> pl.DataFrame:
    """Keep records whose chromosome is one of the split sequences.

    A semi-join on exact, case-sensitive string equality: no "chr" prefix
    handling, no other normalization. Row order and duplicate rows are
    preserved and no columns are added. Records with an empty chromosome
    never match.

    Args:
        records: Annotation table with string columns
        sequence_identity_set: Identifiers from sequence_ids()
        chromosome_column: Column holding the chromosome name

    Returns:
        Filtered DataFrame with the same columns
    """
    if chromosome_column not in records.columns:
        raise AnnotationMismatch(
            f"Column {chromosome_column!r} missing from annotation table "
            f"(columns: {records.columns})"
        )

    if sequence_identity_set:
        filtered = records.filter(
            pl.col(chromosome_column).is_in(sorted(sequence_identity_set))
        )
    else:
        filtered = records.clear()

    logger.info(
        "annotation_reconciled",
        input_rows=records.height,
        kept_rows=filtered.height,
        pruned_rows=records.height - filtered.height,
    )
    return filtered


def reconcile_table(
    text: str,
    table: BiomartTable,
    sequence_identity_set: set[str],
) -> pl.DataFrame:
    """Parse a BioMart response and, if the table has a chromosome column, reconcile it."""
    df = parse_biomart_tsv(text, table.attributes)
    if table.chromosome_column is None:
        return df
    return filter_by_primary_assembly(df, sequence_identity_set, table.chromosome_column)

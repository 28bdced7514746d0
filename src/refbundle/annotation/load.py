"""Write annotation tables into the bundle with provenance tracking."""

from pathlib import Path

import polars as pl
import structlog

from refbundle.annotation.models import BiomartTable
from refbundle.persistence import ProvenanceTracker

logger = structlog.get_logger()


def write_tsv(df: pl.DataFrame, output_path: Path) -> Path:
    """Write a table as tab-separated text without header row or quoting.

    Values are written exactly as parsed, so writing the same table twice
    gives byte-identical files.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    df.write_csv(
        output_path,
        separator="\t",
        include_header=False,
        quote_style="never",
        null_value="",
    )
    return output_path


def save_table(
    df: pl.DataFrame,
    table: BiomartTable,
    bundle_dir: Path,
    provenance: ProvenanceTracker,
) -> Path:
    """Write a table to ``<bundle>/<table.output_file>`` and record the step.

    Args:
        df: Reconciled (or raw ortholog) table
        table: Table definition
        bundle_dir: Bundle directory
        provenance: ProvenanceTracker for metadata recording

    Returns:
        Path to the written TSV
    """
    output_path = write_tsv(df, Path(bundle_dir) / table.output_file)

    provenance.record_step(f"write_{table.name}", {
        "output_file": table.output_file,
        "row_count": df.height,
        "attributes": list(table.attributes),
        "filters": list(table.filters),
        "reconciled": table.chromosome_column is not None,
    })

    logger.info("annotation_table_written", table=table.name, path=str(output_path), row_count=df.height)
    return output_path

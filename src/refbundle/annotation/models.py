"""BioMart table definitions for gene, transcript and ortholog downloads."""

from pydantic import BaseModel, ConfigDict

from refbundle.ensembl.releases import short_name
from refbundle.ensembl.species import resolve

# Attribute used to match records against the split sequence files
CHROMOSOME_ATTRIBUTE = "chromosome_name"

GENE_ATTRIBUTES = (
    "ensembl_gene_id",
    "description",
    "chromosome_name",
    "external_gene_name",
    "entrezgene",
    "gene_biotype",
)

TRANSCRIPT_ATTRIBUTES = (
    "ensembl_transcript_id",
    "transcript_biotype",
    "ensembl_gene_id",
    "chromosome_name",
)


class BiomartTable(BaseModel):
    """One BioMart query and the TSV file its result is written to.

    Attributes:
        name: Short table name used in logs and provenance
        attributes: Requested BioMart attributes, in output column order
        filters: BioMart filter names applied server-side
        output_file: File name inside the bundle directory
        chromosome_column: Column matched against the sequence files, or None
            if the table is written without reconciliation
    """

    model_config = ConfigDict(frozen=True)

    name: str
    attributes: tuple[str, ...]
    filters: tuple[str, ...] = ()
    output_file: str
    chromosome_column: str | None = None


GENES_TABLE = BiomartTable(
    name="genes",
    attributes=GENE_ATTRIBUTES,
    output_file="genes.tsv",
    chromosome_column=CHROMOSOME_ATTRIBUTE,
)

TRANSCRIPTS_TABLE = BiomartTable(
    name="transcripts",
    attributes=TRANSCRIPT_ATTRIBUTES,
    output_file="transcripts.tsv",
    chromosome_column=CHROMOSOME_ATTRIBUTE,
)


def ortholog_attributes(partner_species: str) -> tuple[str, str, str]:
    """Target gene id, partner ortholog gene id and orthology type."""
    partner_short = short_name(resolve(partner_species).scientific_name)
    return (
        "ensembl_gene_id",
        f"{partner_short}_homolog_ensembl_gene",
        f"{partner_short}_homolog_orthology_type",
    )

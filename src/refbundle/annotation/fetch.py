"""Build and run BioMart queries for gene metadata and orthologs."""

import structlog

from refbundle.annotation.models import BiomartTable, ortholog_attributes
from refbundle.api_clients.base import BiomartClient
from refbundle.ensembl.plan import BundlePlan
from refbundle.ensembl.releases import build_filter_name

logger = structlog.get_logger()

QUERY_HEADER = (
    '<?xml version="1.0" encoding="UTF-8"?>'
    "<!DOCTYPE Query>"
    '<Query  virtualSchemaName = "default" formatter = "TSV" header = "0" '
    'uniqueRows = "0" count = "" datasetConfigVersion = "0.6" >'
)


def build_query_xml(dataset: str, table: BiomartTable) -> str:
    """Render a BioMart query document for one table.

    Args:
        dataset: BioMart dataset, e.g. "mmusculus_gene_ensembl"
        table: Attributes and filters to request

    Returns:
        Query XML, TSV output without header row
    """
    parts = [QUERY_HEADER, f'<Dataset name = "{dataset}" interface = "default" >']
    parts.extend(f'<Filter name = "{f}" excluded = "0"/>' for f in table.filters)
    parts.extend(f'<Attribute name = "{a}" />' for a in table.attributes)
    parts.append("</Dataset></Query>")
    return "".join(parts)


def build_ortholog_query(
    target_species: str,
    partner_species: str,
    release: int,
) -> BiomartTable:
    """Describe the ortholog download for one partner species.

    The homology filter is applied by BioMart; the response is written
    unchanged to ``<partner>_orthologs.tsv``.

    Raises:
        ValueError: If target and partner are the same species
    """
    if target_species == partner_species:
        raise ValueError(f"Cannot query orthologs of {target_species} against itself")

    return BiomartTable(
        name=f"{partner_species}_orthologs",
        attributes=ortholog_attributes(partner_species),
        filters=(build_filter_name(partner_species, release),),
        output_file=f"{partner_species}_orthologs.tsv",
    )


def fetch_table(client: BiomartClient, plan: BundlePlan, table: BiomartTable) -> str:
    """Query the plan's BioMart host for a table.

    Returns:
        Raw TSV response body

    Raises:
        TransferFailure: If the request fails or BioMart reports an error
    """
    logger.info(
        "biomart_query_start",
        table=table.name,
        host=plan.biomart_host,
        dataset=plan.dataset,
        filters=list(table.filters),
    )
    text = client.query(plan.biomart_url, build_query_xml(plan.dataset, table))
    logger.info("biomart_query_complete", table=table.name, bytes=len(text))
    return text

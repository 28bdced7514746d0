"""Ensembl metadata resolution: species registry, release naming, bundle plan."""

from refbundle.ensembl.species import (
    AssemblyKind,
    SpeciesRecord,
    SPECIES_REGISTRY,
    derive_assembly_kind,
    list_species,
    resolve,
)
from refbundle.ensembl.releases import (
    BIOMART_HOSTS,
    build_filter_name,
    gene_dataset,
    resolve_endpoint,
    resolve_gtf_version,
    short_name,
    supported_releases,
)
from refbundle.ensembl.plan import BundlePlan, build_plan

__all__ = [
    "AssemblyKind",
    "SpeciesRecord",
    "SPECIES_REGISTRY",
    "derive_assembly_kind",
    "list_species",
    "resolve",
    "BIOMART_HOSTS",
    "build_filter_name",
    "gene_dataset",
    "resolve_endpoint",
    "resolve_gtf_version",
    "short_name",
    "supported_releases",
    "BundlePlan",
    "build_plan",
]

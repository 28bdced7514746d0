"""Resolved names and URLs for one bundle build.

Everything derived from (species, release) is computed here once, so that
configuration errors surface before any download starts and the assembly kind
is threaded unchanged through every later stage.
"""

from typing import Sequence

from pydantic import BaseModel, ConfigDict

from refbundle.ensembl.releases import (
    gene_dataset,
    resolve_endpoint,
    resolve_gtf_version,
)
from refbundle.ensembl.species import (
    AssemblyKind,
    SpeciesRecord,
    derive_assembly_kind,
    resolve,
)

DEFAULT_FTP_BASE_URL = "https://ftp.ensembl.org/pub"
DEFAULT_ORTHOLOG_PARTNERS = ("mouse", "human")


class BundlePlan(BaseModel):
    """Immutable description of a bundle build.

    Attributes:
        species: Registry entry of the target species
        release: Ensembl release requested by the user
        gtf_release: Release in the GTF file name (may be pinned)
        assembly_kind: Genome FASTA variant
        biomart_host: Archived BioMart host for the requested release
        dataset: BioMart gene dataset of the target species
        genome_fasta: Decompressed genome FASTA file name
        genome_url: Download URL of the gzipped genome FASTA
        gtf_file: Decompressed GTF file name
        gtf_url: Download URL of the gzipped GTF
        ortholog_partners: Partner species keys, target excluded
    """

    model_config = ConfigDict(frozen=True)

    species: SpeciesRecord
    release: int
    gtf_release: int
    assembly_kind: AssemblyKind
    biomart_host: str
    dataset: str
    genome_fasta: str
    genome_url: str
    gtf_file: str
    gtf_url: str
    ortholog_partners: tuple[str, ...]

    @property
    def sequence_dir(self) -> str:
        """Directory holding one FASTA file per sequence."""
        return self.assembly_kind.value

    @property
    def combined_fasta(self) -> str:
        """Header-stripped copy of the whole genome."""
        return f"{self.species.key}_{self.assembly_kind.value}.fa"

    @property
    def biomart_url(self) -> str:
        return f"http://{self.biomart_host}/biomart/martservice"


def genome_fasta_name(species: SpeciesRecord, assembly_kind: AssemblyKind) -> str:
    """E.g. "Mus_musculus.GRCm38.dna.primary_assembly.fa"."""
    return (
        f"{species.capitalized_name}.{species.assembly_name}"
        f".dna.{assembly_kind.value}.fa"
    )


def gtf_file_name(species: SpeciesRecord, gtf_release: int) -> str:
    """E.g. "Mus_musculus.GRCm38.82.gtf"."""
    return f"{species.capitalized_name}.{species.assembly_name}.{gtf_release}.gtf"


def build_plan(
    species_key: str,
    release: int,
    ortholog_partners: Sequence[str] = DEFAULT_ORTHOLOG_PARTNERS,
    ftp_base_url: str = DEFAULT_FTP_BASE_URL,
) -> BundlePlan:
    """Resolve every name and URL needed to build a bundle.

    Has no side effects.

    Args:
        species_key: Target species key (e.g. "mouse")
        release: Requested Ensembl release
        ortholog_partners: Species to fetch orthologs for; the target species
            is skipped
        ftp_base_url: Base URL of the Ensembl FTP site ("pub" directory)

    Returns:
        BundlePlan for the build

    Raises:
        UnknownSpecies: If the target or a partner species is not registered
        UnsupportedRelease: If the release has no BioMart host
    """
    species = resolve(species_key)
    biomart_host = resolve_endpoint(release)
    partners = tuple(p for p in ortholog_partners if resolve(p).key != species_key)

    assembly_kind = derive_assembly_kind(species_key)
    gtf_release = resolve_gtf_version(species_key, release)

    genome_fasta = genome_fasta_name(species, assembly_kind)
    gtf_file = gtf_file_name(species, gtf_release)
    base = ftp_base_url.rstrip("/")

    return BundlePlan(
        species=species,
        release=release,
        gtf_release=gtf_release,
        assembly_kind=assembly_kind,
        biomart_host=biomart_host,
        dataset=gene_dataset(species.scientific_name),
        genome_fasta=genome_fasta,
        genome_url=(
            f"{base}/release-{release}/fasta/{species.scientific_name}"
            f"/dna/{genome_fasta}.gz"
        ),
        gtf_file=gtf_file,
        # Directory follows the requested release even when the file name is pinned
        gtf_url=f"{base}/release-{release}/gtf/{species.scientific_name}/{gtf_file}.gz",
        ortholog_partners=partners,
    )

"""Release-dependent Ensembl naming.

Resolves the archived BioMart host for a release, the release whose GTF is
used for a species, and the BioMart dataset and homology filter names, whose
scheme changed at release 86.
"""

from types import MappingProxyType

from refbundle.ensembl.species import resolve
from refbundle.errors import UnsupportedRelease

# Archive host that served BioMart when each release was current
BIOMART_HOSTS: MappingProxyType = MappingProxyType({
    94: "www.ensembl.org",
    93: "jul2018.archive.ensembl.org",
    92: "apr2018.archive.ensembl.org",
    91: "dec2017.archive.ensembl.org",
    90: "aug2017.archive.ensembl.org",
    89: "may2017.archive.ensembl.org",
    88: "mar2017.archive.ensembl.org",
    87: "dec2016.archive.ensembl.org",
    86: "oct2016.archive.ensembl.org",
    85: "jul2016.archive.ensembl.org",
    84: "mar2016.archive.ensembl.org",
    83: "dec2015.archive.ensembl.org",
    82: "sep2015.archive.ensembl.org",
    81: "jul2015.archive.ensembl.org",
    80: "may2015.archive.ensembl.org",
})

# Species whose usable gene annotation only exists at one release
PINNED_GTF_RELEASES: MappingProxyType = MappingProxyType({
    "castaneus": 86,
})

# First release using the "with_<short>_homolog" filter names
HOMOLOG_FILTER_CUTOVER = 86


def supported_releases() -> list[int]:
    """Releases with a BioMart host, newest first."""
    return sorted(BIOMART_HOSTS, reverse=True)


def resolve_endpoint(release: int) -> str:
    """Return the BioMart host for an Ensembl release.

    Raises:
        UnsupportedRelease: If the release has no host mapping
    """
    try:
        return BIOMART_HOSTS[release]
    except KeyError:
        raise UnsupportedRelease(
            f"Unsupported Ensembl release: {release}. "
            f"Supported: {min(BIOMART_HOSTS)}-{max(BIOMART_HOSTS)}"
        ) from None


def resolve_gtf_version(species_key: str, requested_release: int) -> int:
    """Return the release whose GTF file is used for a species.

    Only the GTF file name is affected. Gene metadata is still queried from
    the BioMart host of the requested release.
    """
    return PINNED_GTF_RELEASES.get(species_key, requested_release)


def short_name(scientific_name: str) -> str:
    """Abbreviate a scientific name the way BioMart dataset names do.

    First letter of the name followed by the fragment after the last
    underscore: "mus_musculus" -> "mmusculus",
    "mus_musculus_casteij" -> "mcasteij".
    """
    if "_" not in scientific_name[1:]:
        raise ValueError(
            f"Scientific name must contain an underscore: {scientific_name!r}"
        )
    return scientific_name[0] + scientific_name.rsplit("_", 1)[1]


def gene_dataset(scientific_name: str) -> str:
    """BioMart gene dataset name, e.g. "mmusculus_gene_ensembl"."""
    return f"{short_name(scientific_name)}_gene_ensembl"


def build_filter_name(partner_species: str, release: int) -> str:
    """BioMart filter restricting genes to those with a homolog in a partner.

    Args:
        partner_species: Species key of the ortholog partner
        release: Ensembl release the query is sent to

    Returns:
        "with_<short>_homolog" from release 86 on,
        "with_homolog_<first four letters of short>" before that
    """
    partner_short = short_name(resolve(partner_species).scientific_name)
    if release >= HOMOLOG_FILTER_CUTOVER:
        return f"with_{partner_short}_homolog"
    return f"with_homolog_{partner_short[:4]}"

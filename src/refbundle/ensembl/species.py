"""Species registry for supported Ensembl genomes.

Maps the short species keys accepted on the command line to the Ensembl
scientific name and assembly name used in every file name and URL.
"""

from enum import Enum
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict

from refbundle.errors import UnknownSpecies


class AssemblyKind(str, Enum):
    """Which genome FASTA variant is downloaded for a species.

    The value is used verbatim in Ensembl file names and in the bundle's
    directory names.
    """

    PRIMARY_ASSEMBLY = "primary_assembly"
    TOPLEVEL = "toplevel"


class SpeciesRecord(BaseModel):
    """Immutable registry entry for one species.

    Attributes:
        key: Short species key (e.g. "mouse")
        scientific_name: Lower-case Ensembl scientific name (e.g. "mus_musculus")
        assembly_name: Genome assembly name (e.g. "GRCm38")
    """

    model_config = ConfigDict(frozen=True)

    key: str
    scientific_name: str
    assembly_name: str

    @property
    def capitalized_name(self) -> str:
        """Scientific name with its first letter upper-cased, as in Ensembl file names."""
        return self.scientific_name[:1].upper() + self.scientific_name[1:]


def _record(key: str, scientific_name: str, assembly_name: str) -> SpeciesRecord:
    return SpeciesRecord(
        key=key,
        scientific_name=scientific_name,
        assembly_name=assembly_name,
    )


SPECIES_REGISTRY: MappingProxyType = MappingProxyType({
    "human": _record("human", "homo_sapiens", "GRCh38"),
    "mouse": _record("mouse", "mus_musculus", "GRCm38"),
    "rat": _record("rat", "rattus_norvegicus", "Rnor_6.0"),
    "macaque": _record("macaque", "macaca_mulatta", "Mmul_8.0.1"),
    "chimpanzee": _record("chimpanzee", "pan_troglodytes", "CHIMP2.1.4"),
    "castaneus": _record("castaneus", "mus_musculus_casteij", "CAST_EiJ_v1"),
    "pig": _record("pig", "sus_scrofa", "Sscrofa11.1"),
    "cow": _record("cow", "bos_taurus", "UMD3.1"),
})

# Genomes curated well enough that the primary assembly FASTA excludes
# haplotype and patch sequences.
PRIMARY_ASSEMBLY_SPECIES = frozenset(["human", "mouse"])


def resolve(species_key: str) -> SpeciesRecord:
    """Look up a species by its short key.

    Args:
        species_key: Short species key (e.g. "mouse")

    Returns:
        SpeciesRecord for the species

    Raises:
        UnknownSpecies: If the key is not in the registry
    """
    try:
        return SPECIES_REGISTRY[species_key]
    except KeyError:
        raise UnknownSpecies(
            f"Unknown species: {species_key!r}. "
            f"Supported: {', '.join(SPECIES_REGISTRY)}"
        ) from None


def derive_assembly_kind(species_key: str) -> AssemblyKind:
    """Choose the genome FASTA variant for a species."""
    if species_key in PRIMARY_ASSEMBLY_SPECIES:
        return AssemblyKind.PRIMARY_ASSEMBLY
    return AssemblyKind.TOPLEVEL


def list_species() -> list[SpeciesRecord]:
    """Return all registry entries in registry order."""
    return list(SPECIES_REGISTRY.values())

"""Error taxonomy for bundle builds.

Configuration errors (UnknownSpecies, UnsupportedRelease) are raised while the
bundle plan is resolved, before anything touches the network or the disk.
"""


class RefBundleError(Exception):
    """Base class for all refbundle errors."""


class UnknownSpecies(RefBundleError, KeyError):
    """Species key is not present in the species registry."""

    def __str__(self) -> str:
        return Exception.__str__(self)


class UnsupportedRelease(RefBundleError):
    """Ensembl release has no archived BioMart host."""


class TransferFailure(RefBundleError):
    """Download or BioMart query failed (network, HTTP status or auth)."""


class MalformedReference(RefBundleError):
    """Genome FASTA is truncated or structurally invalid."""


class AnnotationMismatch(RefBundleError):
    """Annotation record lacks a required field; the record is dropped."""


class IndexBuildFailure(RefBundleError):
    """An external index builder exited with an error."""

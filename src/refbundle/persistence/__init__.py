"""Provenance tracking for bundle builds."""

from refbundle.persistence.provenance import ProvenanceTracker

__all__ = ["ProvenanceTracker"]

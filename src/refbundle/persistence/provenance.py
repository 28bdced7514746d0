"""Provenance record written next to every bundle."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

SIDECAR_SUFFIX = ".provenance.json"


class ProvenanceTracker:
    """
    Collects what a bundle was built from.

    The Ensembl release, the GTF release actually downloaded (which differs
    for pinned species), the BioMart host and the assembly are fixed when the
    tracker is created; build stages append steps as they finish.
    """

    def __init__(self, pipeline_version: str, config: "PipelineConfig", plan: "BundlePlan"):
        self.pipeline_version = pipeline_version
        self.config_hash = config.config_hash()
        self.species = plan.species.key
        self.data_source_versions = {
            "ensembl_release": plan.release,
            "gtf_release": plan.gtf_release,
            "biomart_host": plan.biomart_host,
            "assembly": plan.species.assembly_name,
            "assembly_kind": plan.assembly_kind.value,
        }
        self.processing_steps: list[dict] = []
        self.created_at = datetime.now(timezone.utc)

    def record_step(self, step_name: str, details: Optional[dict] = None) -> None:
        """Append a finished stage, with optional details, to the step list."""
        step = {
            "step_name": step_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        if details:
            step["details"] = details
        self.processing_steps.append(step)

    def get_steps(self) -> list[dict]:
        return self.processing_steps

    def create_metadata(self) -> dict:
        return {
            "pipeline_version": self.pipeline_version,
            "species": self.species,
            "data_source_versions": self.data_source_versions,
            "config_hash": self.config_hash,
            "created_at": self.created_at.isoformat(),
            "processing_steps": self.processing_steps,
        }

    def save_sidecar(self, output_path: Path) -> Path:
        """
        Write the metadata as JSON to ``<output_path>.provenance.json``.

        Args:
            output_path: Output the record describes; for a whole bundle pass
                ``<bundle_dir>/bundle``

        Returns:
            Path of the sidecar file
        """
        sidecar_path = Path(output_path).with_suffix(SIDECAR_SUFFIX)
        sidecar_path.parent.mkdir(parents=True, exist_ok=True)
        sidecar_path.write_text(json.dumps(self.create_metadata(), indent=2, default=str))
        return sidecar_path

    @staticmethod
    def load_sidecar(sidecar_path: Path) -> dict:
        return json.loads(Path(sidecar_path).read_text())

    @classmethod
    def from_config(
        cls,
        config: "PipelineConfig",
        plan: "BundlePlan",
        version: Optional[str] = None,
    ) -> "ProvenanceTracker":
        """Create a tracker stamped with the installed refbundle version unless one is given."""
        if version is None:
            from refbundle import __version__
            version = __version__

        return cls(version, config, plan)

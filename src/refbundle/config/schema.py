"""Pydantic models for pipeline configuration."""

import hashlib
import json
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

INDEX_BUILDERS = ("star", "salmon", "kallisto", "bowtie2")


class EnsemblConfig(BaseModel):
    """Access to the Ensembl FTP site."""

    ftp_base_url: str = Field(
        default="https://ftp.ensembl.org/pub",
        description="Base URL of the Ensembl FTP 'pub' directory",
    )
    ftp_user: str = Field(
        default="anonymous",
        description="Login name; the e-mail given on the command line is the password",
    )
    timeout_seconds: int = Field(
        default=600,
        ge=1,
        description="Timeout for genome and GTF downloads",
    )


class BiomartConfig(BaseModel):
    """Configuration for BioMart queries."""

    cache_ttl_seconds: int = Field(
        default=86400,
        ge=0,
        description="Cache time-to-live in seconds (0 = infinite)",
    )
    timeout_seconds: int = Field(
        default=300,
        ge=1,
        description="Request timeout in seconds",
    )


class IndexConfig(BaseModel):
    """Fixed arguments handed to the external index builders."""

    num_threads: int = Field(
        default=16,
        ge=1,
        description="Thread count forwarded to every builder",
    )
    sjdb_overhang: int = Field(
        default=100,
        ge=1,
        description="STAR --sjdbOverhang (read length - 1)",
    )
    star_executable: str = Field(
        default="STAR",
        description="STAR binary to run",
    )
    star_version: str = Field(
        default="2.5.3a",
        description="STAR version, used in the index directory name",
    )
    bowtie2_version: str = Field(
        default="2.3.4",
        description="Bowtie2 version, used in the index directory name",
    )
    builders: list[str] = Field(
        default_factory=lambda: list(INDEX_BUILDERS),
        description="Index builders to run",
    )

    @field_validator("builders")
    @classmethod
    def known_builders(cls, v: list[str]) -> list[str]:
        """Reject builder names that are not supported."""
        unknown = [b for b in v if b not in INDEX_BUILDERS]
        if unknown:
            raise ValueError(
                f"Unknown index builders {unknown}; choose from {list(INDEX_BUILDERS)}"
            )
        return v


class OrthologConfig(BaseModel):
    """Ortholog tables to download."""

    partners: list[str] = Field(
        default_factory=lambda: ["mouse", "human"],
        description="Partner species keys (the target species is always skipped)",
    )


class PipelineConfig(BaseModel):
    """Main pipeline configuration."""

    output_dir: Path = Field(
        ...,
        description="Directory in which bundles are built, one subdirectory per run",
    )
    cache_dir: Path = Field(
        ...,
        description="Directory for BioMart response caching",
    )
    ensembl: EnsemblConfig = Field(
        default_factory=EnsemblConfig,
        description="Ensembl FTP access",
    )
    biomart: BiomartConfig = Field(
        default_factory=BiomartConfig,
        description="BioMart client configuration",
    )
    indexes: IndexConfig = Field(
        default_factory=IndexConfig,
        description="Index builder arguments",
    )
    orthologs: OrthologConfig = Field(
        default_factory=OrthologConfig,
        description="Ortholog partner species",
    )

    @field_validator("output_dir", "cache_dir")
    @classmethod
    def expand_user(cls, v: Path) -> Path:
        """Expand a leading '~' in directory paths."""
        return v.expanduser()

    def bundle_dir(self, species_key: str, release: int) -> Path:
        """Directory of the bundle for one species/release pair."""
        return self.output_dir / f"{species_key}_ensembl_{release}"

    def config_hash(self) -> str:
        """
        Compute SHA-256 hash of the configuration.

        Returns a deterministic hash based on all config values,
        useful for tracking which settings produced a bundle.
        """
        config_dict = self.model_dump(mode="python")
        config_json = json.dumps(
            config_dict,
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(config_json.encode()).hexdigest()

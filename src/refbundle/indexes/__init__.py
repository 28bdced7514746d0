"""External index builders (STAR, Salmon, Kallisto, Bowtie2)."""

from refbundle.indexes.builders import (
    build_bowtie2_index,
    build_indexes,
    build_kallisto_index,
    build_salmon_index,
    build_star_index,
    prepare_transcripts,
    run_tool,
)

__all__ = [
    "build_bowtie2_index",
    "build_indexes",
    "build_kallisto_index",
    "build_salmon_index",
    "build_star_index",
    "prepare_transcripts",
    "run_tool",
]

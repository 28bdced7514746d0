"""Run the external index builders on the split genome.

STAR and RSEM read the GTF; Salmon and Kallisto index the transcript
sequences RSEM extracts; Bowtie2 indexes the combined genome FASTA. All
commands run from the bundle directory with relative paths, so the bundle
can be moved after it is built.
"""

import subprocess
from pathlib import Path
from typing import Sequence

import structlog

from refbundle.config.schema import IndexConfig
from refbundle.ensembl.plan import BundlePlan
from refbundle.errors import IndexBuildFailure
from refbundle.persistence import ProvenanceTracker

logger = structlog.get_logger()

STAR_INDICES_DIR = "STAR_indices"
SALMON_INDEX_DIR = "salmon_index"
KALLISTO_INDEX = "kallisto_index"
BOWTIE2_INDICES_DIR = "bowtie2_indices"
README = "README"

# rsem-prepare-reference writes <prefix>.transcripts.fa
TRANSCRIPTS_PREFIX = f"{SALMON_INDEX_DIR}/transcripts"
TRANSCRIPTS_FASTA = f"{TRANSCRIPTS_PREFIX}.transcripts.fa"


def run_tool(
    cmd: Sequence[str],
    cwd: Path,
    capture: bool = False,
) -> subprocess.CompletedProcess:
    """Run an external tool, raising IndexBuildFailure if it fails.

    Args:
        cmd: Command and arguments
        cwd: Working directory (the bundle directory)
        capture: Capture stdout and stderr (merged) as text

    Returns:
        CompletedProcess of the finished command
    """
    tool = cmd[0]
    logger.info("index_tool_start", tool=tool, command=" ".join(cmd))
    try:
        result = subprocess.run(
            list(cmd),
            cwd=str(cwd),
            check=True,
            stdout=subprocess.PIPE if capture else None,
            stderr=subprocess.STDOUT if capture else None,
            text=capture,
        )
    except FileNotFoundError as e:
        raise IndexBuildFailure(f"{tool} not found on PATH") from e
    except subprocess.CalledProcessError as e:
        raise IndexBuildFailure(f"{tool} exited with status {e.returncode}") from e
    logger.info("index_tool_complete", tool=tool)
    return result


def tool_version(cmd: Sequence[str], cwd: Path) -> str:
    """Version string a tool prints (on stdout or stderr)."""
    return run_tool(cmd, cwd, capture=True).stdout.strip()


def link_alias(index_root: Path, versioned_name: str, alias: str) -> Path:
    """Point ``<index_root>/<alias>`` at the versioned index directory."""
    link = Path(index_root) / alias
    if link.is_symlink():
        link.unlink()
    link.symlink_to(versioned_name)
    return link


def append_readme(bundle_dir: Path, line: str) -> None:
    with open(Path(bundle_dir) / README, "a") as f:
        f.write(line + "\n")


def build_star_index(
    plan: BundlePlan,
    bundle_dir: Path,
    gtf_file: str,
    config: IndexConfig,
) -> Path:
    """Generate a STAR genome index with splice junctions from the GTF."""
    bundle_dir = Path(bundle_dir)
    kind = plan.assembly_kind.value
    versioned = f"{kind}_{config.star_version}"
    genome_dir = bundle_dir / STAR_INDICES_DIR / versioned
    genome_dir.mkdir(parents=True, exist_ok=True)

    fasta_files = sorted(
        f"{plan.sequence_dir}/{p.name}"
        for p in (bundle_dir / plan.sequence_dir).glob("*.fa")
    )

    run_tool(
        [
            config.star_executable,
            "--runThreadN", str(config.num_threads),
            "--runMode", "genomeGenerate",
            "--genomeDir", f"{STAR_INDICES_DIR}/{versioned}",
            "--genomeFastaFiles", *fasta_files,
            "--sjdbGTFfile", gtf_file,
            "--sjdbOverhang", str(config.sjdb_overhang),
        ],
        bundle_dir,
    )

    link_alias(bundle_dir / STAR_INDICES_DIR, versioned, kind)
    return genome_dir


def prepare_transcripts(
    plan: BundlePlan,
    bundle_dir: Path,
    gtf_file: str,
    config: IndexConfig,
) -> Path:
    """Extract transcript sequences with rsem-prepare-reference."""
    bundle_dir = Path(bundle_dir)
    (bundle_dir / SALMON_INDEX_DIR).mkdir(parents=True, exist_ok=True)

    run_tool(
        [
            "rsem-prepare-reference",
            "-p", str(config.num_threads),
            "--gtf", gtf_file,
            plan.sequence_dir,
            TRANSCRIPTS_PREFIX,
        ],
        bundle_dir,
    )
    return bundle_dir / TRANSCRIPTS_FASTA


def build_salmon_index(bundle_dir: Path, config: IndexConfig) -> Path:
    bundle_dir = Path(bundle_dir)
    run_tool(
        [
            "salmon", "index",
            "-p", str(config.num_threads),
            "-t", TRANSCRIPTS_FASTA,
            "-i", SALMON_INDEX_DIR,
        ],
        bundle_dir,
    )
    version = tool_version(["salmon", "--version"], bundle_dir)
    append_readme(bundle_dir, f"Salmon index created with {version}.")
    return bundle_dir / SALMON_INDEX_DIR


def build_kallisto_index(bundle_dir: Path) -> Path:
    bundle_dir = Path(bundle_dir)
    run_tool(["kallisto", "index", "-i", KALLISTO_INDEX, TRANSCRIPTS_FASTA], bundle_dir)
    version = tool_version(["kallisto", "version"], bundle_dir)
    append_readme(bundle_dir, f"Kallisto index created with {version}.")
    return bundle_dir / KALLISTO_INDEX


def build_bowtie2_index(plan: BundlePlan, bundle_dir: Path, config: IndexConfig) -> Path:
    """Build a Bowtie2 index of the combined genome FASTA."""
    bundle_dir = Path(bundle_dir)
    kind = plan.assembly_kind.value
    versioned = f"{kind}_{config.bowtie2_version}"
    index_dir = bundle_dir / BOWTIE2_INDICES_DIR / versioned
    index_dir.mkdir(parents=True, exist_ok=True)

    run_tool(
        [
            "bowtie2-build",
            "--threads", str(config.num_threads),
            plan.combined_fasta,
            f"{BOWTIE2_INDICES_DIR}/{versioned}/bt2index",
        ],
        bundle_dir,
    )

    link_alias(bundle_dir / BOWTIE2_INDICES_DIR, versioned, kind)
    return index_dir


def build_indexes(
    plan: BundlePlan,
    bundle_dir: Path,
    gtf_file: str,
    config: IndexConfig,
    provenance: ProvenanceTracker,
) -> dict[str, Path]:
    """Run every enabled index builder in a fixed order.

    Args:
        plan: Resolved BundlePlan
        bundle_dir: Bundle directory holding the split FASTA and the GTF
        gtf_file: GTF file name relative to the bundle directory
        config: Index builder arguments
        provenance: ProvenanceTracker for metadata recording

    Returns:
        Mapping of builder name to index path

    Raises:
        IndexBuildFailure: On the first builder that fails
    """
    enabled = set(config.builders)
    built: dict[str, Path] = {}

    if "star" in enabled:
        built["star"] = build_star_index(plan, bundle_dir, gtf_file, config)
        provenance.record_step("build_star_index", {
            "star_version": config.star_version,
            "sjdb_overhang": config.sjdb_overhang,
        })

    if enabled & {"salmon", "kallisto"}:
        prepare_transcripts(plan, bundle_dir, gtf_file, config)
        provenance.record_step("prepare_transcripts", {"transcripts_fasta": TRANSCRIPTS_FASTA})

    if "salmon" in enabled:
        built["salmon"] = build_salmon_index(bundle_dir, config)
        provenance.record_step("build_salmon_index")

    if "kallisto" in enabled:
        built["kallisto"] = build_kallisto_index(bundle_dir)
        provenance.record_step("build_kallisto_index")

    if "bowtie2" in enabled:
        built["bowtie2"] = build_bowtie2_index(plan, bundle_dir, config)
        provenance.record_step("build_bowtie2_index", {
            "bowtie2_version": config.bowtie2_version,
        })

    return built

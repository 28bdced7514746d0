"""Split a genome FASTA into one file per top-level sequence."""

import re
from pathlib import Path

import structlog

from refbundle.ensembl.plan import BundlePlan
from refbundle.errors import MalformedReference

logger = structlog.get_logger()

# ">1 dna:chromosome chromosome:GRCm38:1:1:195471971:1 REF" -> ">1"
HEADER_ANNOTATION = re.compile(r"^>(.*) dna.*$")

FASTA_SUFFIX = ".fa"


def strip_header(line: str) -> str:
    """Drop the sequence-type annotation from a FASTA header line.

    Args:
        line: Header line, with or without its line terminator

    Returns:
        Header without annotation and without line terminator
    """
    header = line.rstrip("\r\n")
    match = HEADER_ANNOTATION.match(header)
    if match:
        return ">" + match.group(1)
    return header


def sequence_id(header: str) -> str:
    """Identifier of a stripped header: first whitespace token after '>'."""
    tokens = header[1:].split()
    return tokens[0] if tokens else ""


def split_fasta(
    fasta_path: Path,
    output_dir: Path,
    combined_path: Path | None = None,
) -> list[str]:
    """Write each record of a multi-sequence FASTA to ``<output_dir>/<id>.fa``.

    Headers are rewritten without their sequence-type annotation; sequence
    lines are copied unchanged. When ``combined_path`` is given, the whole
    header-stripped FASTA is also written there (via a ``.partial`` file that
    is renamed once the input has been read completely). Other ``.fa`` files
    already in ``output_dir`` are removed first.

    Args:
        fasta_path: Input genome FASTA
        output_dir: Directory for per-sequence files
        combined_path: Optional path for the header-stripped full copy

    Returns:
        Sequence identifiers in input order

    Raises:
        MalformedReference: If sequence data precedes the first header, a
            header has no identifier, an identifier repeats, or the file
            holds no records
    """
    fasta_path = Path(fasta_path)
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    # Files from an earlier run would otherwise be indexed and reconciled
    stale = [
        p for p in output_dir.glob(f"*{FASTA_SUFFIX}")
        if p.resolve() != fasta_path.resolve()
    ]
    for path in stale:
        path.unlink()
    if stale:
        logger.info("stale_sequences_removed", output_dir=str(output_dir), count=len(stale))

    seen: set[str] = set()
    identifiers: list[str] = []
    current = None
    combined = None
    partial_path = None

    if combined_path is not None:
        combined_path = Path(combined_path)
        partial_path = combined_path.with_suffix(combined_path.suffix + ".partial")
        combined = open(partial_path, "w", newline="")

    try:
        with open(fasta_path, "r", newline="") as f_in:
            for line_number, line in enumerate(f_in, start=1):
                if line.startswith(">"):
                    header = strip_header(line)
                    seq_id = sequence_id(header)
                    if not seq_id:
                        raise MalformedReference(
                            f"{fasta_path}:{line_number}: header without identifier"
                        )
                    if seq_id in seen:
                        raise MalformedReference(
                            f"{fasta_path}:{line_number}: duplicate sequence {seq_id!r}"
                        )
                    seen.add(seq_id)
                    identifiers.append(seq_id)

                    if current is not None:
                        current.close()
                    current = open(output_dir / f"{seq_id}{FASTA_SUFFIX}", "w", newline="")
                    line = header + "\n"
                elif current is None:
                    if not line.strip():
                        continue
                    raise MalformedReference(
                        f"{fasta_path}:{line_number}: sequence data before first header"
                    )

                current.write(line)
                if combined is not None:
                    combined.write(line)
    finally:
        if current is not None:
            current.close()
        if combined is not None:
            combined.close()

    if not identifiers:
        raise MalformedReference(f"{fasta_path}: no sequence records")

    if partial_path is not None:
        partial_path.replace(combined_path)

    logger.info(
        "fasta_split_complete",
        source=str(fasta_path),
        output_dir=str(output_dir),
        sequence_count=len(identifiers),
    )

    return identifiers


def split_genome(plan: BundlePlan, bundle_dir: Path, fasta_path: Path) -> list[str]:
    """Split the downloaded genome into the bundle's sequence directory.

    The per-sequence files go to ``<bundle>/<assembly_kind>/``, the stripped
    copy to ``<bundle>/<species>_<assembly_kind>.fa``; the downloaded FASTA is
    removed afterwards so that only per-sequence files remain in the
    sequence directory.

    Returns:
        Sequence identifiers in input order
    """
    bundle_dir = Path(bundle_dir)
    fasta_path = Path(fasta_path)

    identifiers = split_fasta(
        fasta_path,
        bundle_dir / plan.sequence_dir,
        combined_path=bundle_dir / plan.combined_fasta,
    )
    fasta_path.unlink()

    return identifiers

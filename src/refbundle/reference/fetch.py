"""Download genome FASTA and GTF files from the Ensembl FTP site."""

import gzip
import shutil
from pathlib import Path

import httpx
import structlog

from refbundle.ensembl.plan import BundlePlan
from refbundle.errors import TransferFailure

logger = structlog.get_logger()

# Ensembl GTF files open with "#!genome-build", "#!genome-version", ... lines
GTF_HEADER_PREFIX = "#!"


def download_from_ensembl(
    url: str,
    output_path: Path,
    user: str,
    password: str,
    timeout: float = 600.0,
) -> Path:
    """Download a gzipped Ensembl file and decompress it.

    The compressed stream is written to a ``.gz.tmp`` file next to the output
    and removed after decompression.

    Args:
        url: URL of the ``.gz`` file
        output_path: Where to write the decompressed file
        user: FTP login name
        password: FTP password (the user's e-mail for anonymous access)
        timeout: Request timeout in seconds

    Returns:
        Path to the decompressed file

    Raises:
        TransferFailure: On HTTP, network or authentication errors, or if the
            downloaded file is not valid gzip data
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = output_path.with_suffix(output_path.suffix + ".gz.tmp")

    logger.info("ensembl_download_start", url=url)

    try:
        with httpx.stream(
            "GET",
            url,
            auth=(user, password),
            timeout=timeout,
            follow_redirects=True,
        ) as response:
            response.raise_for_status()

            total_bytes = int(response.headers.get("content-length", 0))
            downloaded = 0

            with open(temp_path, "wb") as f:
                for chunk in response.iter_bytes(chunk_size=1024 * 1024):
                    f.write(chunk)
                    downloaded += len(chunk)

                    # Log progress every 100MB
                    if total_bytes > 0 and downloaded % (100 * 1024 * 1024) < 1024 * 1024:
                        logger.info(
                            "ensembl_download_progress",
                            downloaded_mb=round(downloaded / 1024 / 1024, 2),
                            total_mb=round(total_bytes / 1024 / 1024, 2),
                            percent=round(downloaded / total_bytes * 100, 1),
                        )
    except httpx.HTTPError as e:
        raise TransferFailure(f"Download of {url} failed: {e}") from e

    logger.info("ensembl_decompress_start", compressed_path=str(temp_path))
    try:
        with gzip.open(temp_path, "rb") as f_in:
            with open(output_path, "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)
    except (OSError, EOFError) as e:
        raise TransferFailure(f"Downloaded file from {url} is not valid gzip: {e}") from e
    temp_path.unlink()

    logger.info(
        "ensembl_download_complete",
        path=str(output_path),
        size_mb=round(output_path.stat().st_size / 1024 / 1024, 2),
    )

    return output_path


def strip_gtf_header(gtf_path: Path) -> int:
    """Remove the leading ``#!`` header block of a GTF file in place.

    Returns:
        Number of header lines removed
    """
    gtf_path = Path(gtf_path)
    temp_path = gtf_path.with_suffix(gtf_path.suffix + ".tmp")

    removed = 0
    in_header = True
    with open(gtf_path, "r") as f_in, open(temp_path, "w") as f_out:
        for line in f_in:
            if in_header and line.startswith(GTF_HEADER_PREFIX):
                removed += 1
                continue
            in_header = False
            f_out.write(line)

    temp_path.replace(gtf_path)
    return removed


def fetch_genome(
    plan: BundlePlan,
    bundle_dir: Path,
    user: str,
    password: str,
    timeout: float = 600.0,
) -> Path:
    """Download and decompress the genome FASTA into the sequence directory.

    Returns:
        Path to ``<bundle>/<assembly_kind>/<genome_fasta>``
    """
    output_path = Path(bundle_dir) / plan.sequence_dir / plan.genome_fasta
    return download_from_ensembl(
        plan.genome_url, output_path, user=user, password=password, timeout=timeout
    )


def fetch_gtf(
    plan: BundlePlan,
    bundle_dir: Path,
    user: str,
    password: str,
    timeout: float = 600.0,
) -> Path:
    """Download the gene annotation and strip its header.

    Returns:
        Path to ``<bundle>/<gtf_file>``
    """
    output_path = Path(bundle_dir) / plan.gtf_file
    download_from_ensembl(
        plan.gtf_url, output_path, user=user, password=password, timeout=timeout
    )
    removed = strip_gtf_header(output_path)
    logger.info("gtf_header_stripped", path=str(output_path), lines_removed=removed)
    return output_path

"""Build command: create a reference bundle for one species and release.

Orchestrates the full build, one stage after the other:
1. Load config and resolve the bundle plan (no side effects)
2. Download and split the genome FASTA
3. Download the GTF annotation
4. Build STAR, Salmon, Kallisto and Bowtie2 indexes
5. Download gene and transcript tables, keep records on split sequences
6. Download ortholog tables for each partner species
7. Save provenance
"""

import logging
import sys
from pathlib import Path

import click

from refbundle.annotation import (
    GENES_TABLE,
    TRANSCRIPTS_TABLE,
    build_ortholog_query,
    fetch_table,
    reconcile_table,
    save_table,
)
from refbundle.api_clients.base import BiomartClient
from refbundle.config.loader import load_config_with_overrides
from refbundle.ensembl import build_plan
from refbundle.indexes import build_indexes
from refbundle.persistence import ProvenanceTracker
from refbundle.reference import fetch_genome, fetch_gtf, split_genome

logger = logging.getLogger(__name__)


@click.command('build')
@click.argument('species')
@click.argument('release', type=int)
@click.argument('email')
@click.option(
    '--threads',
    type=int,
    default=None,
    help='Thread count for the index builders (default: from config)'
)
@click.pass_context
def build(ctx, species, release, email, threads):
    """Build the reference bundle for SPECIES at Ensembl RELEASE.

    EMAIL is sent as the password of the anonymous Ensembl FTP login.
    A failed build leaves its partial bundle directory in place; do not use it.
    """
    config_path = ctx.obj['config_path']
    click.echo(click.style("=== refbundle build ===", bold=True))
    click.echo()

    stage = "configuration"
    try:
        # 1. Load config and resolve everything before touching disk or network
        overrides = {}
        if threads is not None:
            overrides['indexes.num_threads'] = threads
        config = load_config_with_overrides(config_path, overrides)

        plan = build_plan(
            species,
            release,
            ortholog_partners=config.orthologs.partners,
            ftp_base_url=config.ensembl.ftp_base_url,
        )
        bundle_dir = config.bundle_dir(plan.species.key, plan.release)

        click.echo(f"Species: {plan.species.key} ({plan.species.assembly_name}, {plan.assembly_kind.value})")
        click.echo(f"Ensembl Release: {plan.release} (GTF {plan.gtf_release})")
        click.echo(f"BioMart Host: {plan.biomart_host}")
        click.echo(f"Bundle: {bundle_dir}")
        click.echo()

        bundle_dir.mkdir(parents=True, exist_ok=True)
        provenance = ProvenanceTracker.from_config(config, plan)
        client = BiomartClient.from_config(config)
        ftp = dict(
            user=config.ensembl.ftp_user,
            password=email,
            timeout=config.ensembl.timeout_seconds,
        )

        # 2. Genome
        stage = "genome download"
        click.echo("Downloading genome FASTA...")
        fasta_path = fetch_genome(plan, bundle_dir, **ftp)

        stage = "genome split"
        identifiers = split_genome(plan, bundle_dir, fasta_path)
        click.echo(click.style(
            f"  Split into {len(identifiers)} sequences in {plan.sequence_dir}/",
            fg='green'
        ))
        provenance.record_step('split_genome', {
            'genome_url': plan.genome_url,
            'sequence_count': len(identifiers),
        })
        click.echo()

        # 3. Annotation
        stage = "GTF download"
        click.echo("Downloading GTF annotation...")
        gtf_path = fetch_gtf(plan, bundle_dir, **ftp)
        click.echo(click.style(f"  Saved {gtf_path.name}", fg='green'))
        provenance.record_step('fetch_gtf', {'gtf_url': plan.gtf_url})
        click.echo()

        # 4. Indexes
        stage = "index build"
        click.echo(f"Building indexes ({', '.join(config.indexes.builders) or 'none'})...")
        built = build_indexes(plan, bundle_dir, plan.gtf_file, config.indexes, provenance)
        for name, path in built.items():
            click.echo(click.style(f"  {name}: {path.relative_to(bundle_dir)}", fg='green'))
        click.echo()

        # 5. Gene and transcript tables
        members = set(identifiers)
        for table in (GENES_TABLE, TRANSCRIPTS_TABLE):
            stage = f"{table.name} table"
            click.echo(f"Downloading {table.name} from BioMart...")
            df = reconcile_table(fetch_table(client, plan, table), table, members)
            save_table(df, table, bundle_dir, provenance)
            click.echo(click.style(f"  Saved {df.height} records to {table.output_file}", fg='green'))
        click.echo()

        # 6. Orthologs
        for partner in plan.ortholog_partners:
            table = build_ortholog_query(plan.species.key, partner, plan.release)
            stage = f"{table.name} table"
            click.echo(f"Downloading {partner} orthologs from BioMart...")
            df = reconcile_table(fetch_table(client, plan, table), table, members)
            save_table(df, table, bundle_dir, provenance)
            click.echo(click.style(f"  Saved {df.height} records to {table.output_file}", fg='green'))
        click.echo()

        # 7. Provenance
        stage = "provenance"
        provenance_path = provenance.save_sidecar(bundle_dir / "bundle")
        click.echo(click.style("=== Build Summary ===", bold=True))
        click.echo(f"Sequences: {len(identifiers)}")
        click.echo(f"Indexes: {', '.join(built) or 'none'}")
        click.echo(f"Provenance: {provenance_path}")
        click.echo()
        click.echo(click.style("Build complete!", fg='green', bold=True))

    except Exception as e:
        click.echo(click.style(f"Build failed during {stage}: {e}", fg='red'), err=True)
        logger.exception(f"Build failed during {stage}")
        sys.exit(1)

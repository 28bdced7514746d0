"""Main CLI entry point for refbundle.

Provides command group with global options and subcommands for bundle builds.
"""

import logging
from pathlib import Path

import click

from refbundle import __version__
from refbundle.config.loader import load_config
from refbundle.cli.build_cmd import build
from refbundle.ensembl import build_plan, list_species, supported_releases
from refbundle.errors import RefBundleError


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


@click.group()
@click.option(
    '--config',
    type=click.Path(exists=True, path_type=Path),
    default='config/default.yaml',
    help='Path to pipeline configuration YAML file'
)
@click.option(
    '--verbose',
    is_flag=True,
    help='Enable verbose logging (DEBUG level)'
)
@click.pass_context
def cli(ctx, config, verbose):
    """refbundle: Reference-genome bundles from archived Ensembl releases.

    Downloads the genome and gene annotation of one species at one Ensembl
    release, builds STAR, Salmon, Kallisto and Bowtie2 indexes, and writes
    gene, transcript and ortholog tables restricted to the indexed sequences.
    """
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config
    ctx.obj['verbose'] = verbose

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Verbose logging enabled")


@cli.command()
@click.pass_context
def info(ctx):
    """Display pipeline information and configuration summary."""
    config_path = ctx.obj['config_path']

    click.echo(f"refbundle v{__version__}")
    click.echo(f"Config: {config_path}")
    click.echo()

    try:
        config = load_config(config_path)

        config_hash = config.config_hash()
        click.echo(f"Config Hash: {config_hash[:16]}...")
        click.echo()

        click.echo(click.style("Supported:", bold=True))
        click.echo(f"  Species: {', '.join(s.key for s in list_species())}")
        releases = supported_releases()
        click.echo(f"  Ensembl Releases: {releases[-1]}-{releases[0]}")
        click.echo()

        click.echo(click.style("Paths:", bold=True))
        click.echo(f"  Output Directory: {config.output_dir}")
        click.echo(f"  Cache Directory: {config.cache_dir}")
        click.echo()

        click.echo(click.style("Index Builders:", bold=True))
        click.echo(f"  Builders: {', '.join(config.indexes.builders) or 'none'}")
        click.echo(f"  Threads: {config.indexes.num_threads}")
        click.echo(f"  STAR: {config.indexes.star_executable} ({config.indexes.star_version})")
        click.echo(f"  Bowtie2: {config.indexes.bowtie2_version}")
        click.echo()

        click.echo(click.style("Orthologs:", bold=True))
        click.echo(f"  Partners: {', '.join(config.orthologs.partners)}")

    except Exception as e:
        click.echo(click.style(f"Error loading config: {e}", fg='red'), err=True)
        ctx.exit(1)


@cli.command()
@click.argument('species')
@click.argument('release', type=int)
@click.pass_context
def resolve(ctx, species, release):
    """Show the files and queries a build of SPECIES at RELEASE would use.

    Makes no network requests and writes nothing.
    """
    try:
        config = load_config(ctx.obj['config_path'])
        plan = build_plan(
            species,
            release,
            ortholog_partners=config.orthologs.partners,
            ftp_base_url=config.ensembl.ftp_base_url,
        )
    except RefBundleError as e:
        click.echo(click.style(f"Cannot resolve {species} {release}: {e}", fg='red'), err=True)
        ctx.exit(1)
        return

    click.echo(click.style(f"{plan.species.key} ({plan.species.scientific_name})", bold=True))
    click.echo(f"  Assembly: {plan.species.assembly_name} ({plan.assembly_kind.value})")
    click.echo(f"  Ensembl Release: {plan.release}")
    click.echo(f"  GTF Release: {plan.gtf_release}")
    click.echo(f"  BioMart Host: {plan.biomart_host}")
    click.echo(f"  BioMart Dataset: {plan.dataset}")
    click.echo(f"  Genome: {plan.genome_url}")
    click.echo(f"  GTF: {plan.gtf_url}")
    click.echo(f"  Bundle: {config.bundle_dir(plan.species.key, plan.release)}")
    click.echo(f"  Ortholog Partners: {', '.join(plan.ortholog_partners) or 'none'}")


# Register commands
cli.add_command(build)


if __name__ == '__main__':
    cli()

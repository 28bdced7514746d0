"""CLI tests using CliRunner.

Tests:
- info and resolve output
- resolve errors for unknown species and unsupported releases
- Full build with downloads, index builders and BioMart mocked
- Build fails before creating the bundle on invalid input
- Build failure reports the failing stage
"""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from refbundle.cli.main import cli
from refbundle.errors import IndexBuildFailure, TransferFailure

GENOME = (
    ">1 dna:chromosome chromosome:GRCm38:1:1:8:1 REF\n"
    "ACGTACGT\n"
    ">X dna:chromosome chromosome:GRCm38:X:1:4:1 REF\n"
    "GGCC\n"
)

BIOMART_RESPONSES = {
    "genes": (
        "ENSMUSG1\tgene one\t1\tGene1\t11\tprotein_coding\n"
        "ENSMUSG2\tpatch gene\tCHR_MG132_PATCH\tGene2\t12\tprotein_coding\n"
        "ENSMUSG3\tgene three\tX\tGene3\t\tlincRNA\n"
    ),
    "transcripts": (
        "ENSMUST1\tprotein_coding\tENSMUSG1\t1\n"
        "ENSMUST2\tprotein_coding\tENSMUSG2\tCHR_MG132_PATCH\n"
    ),
    "human_orthologs": (
        "ENSMUSG1\tENSG1\tortholog_one2one\n"
        "ENSMUSG2\tENSG2\tortholog_one2many\n"
    ),
}


@pytest.fixture
def test_config(tmp_path):
    """Create minimal config YAML for testing."""
    config_path = tmp_path / "test_config.yaml"
    config_path.write_text(f"""
output_dir: {tmp_path}/bundles
cache_dir: {tmp_path}/cache
indexes:
  num_threads: 2
""")
    return config_path


def fake_fetch_genome(plan, bundle_dir, user, password, timeout):
    path = Path(bundle_dir) / plan.sequence_dir / plan.genome_fasta
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(GENOME)
    return path


def fake_fetch_gtf(plan, bundle_dir, user, password, timeout):
    path = Path(bundle_dir) / plan.gtf_file
    path.write_text('1\thavana\tgene\t1\t8\t.\t+\t.\tgene_id "ENSMUSG1";\n')
    return path


def fake_fetch_table(client, plan, table):
    return BIOMART_RESPONSES[table.name]


def test_info_command(test_config):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'info'])

    assert result.exit_code == 0
    assert 'Config Hash' in result.output
    assert 'castaneus' in result.output
    assert 'Ensembl Releases: 80-94' in result.output
    assert 'Threads: 2' in result.output


def test_resolve_command(test_config):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'resolve', 'castaneus', '90'])

    assert result.exit_code == 0
    assert 'CAST_EiJ_v1 (toplevel)' in result.output
    assert 'GTF Release: 86' in result.output
    assert 'aug2017.archive.ensembl.org' in result.output
    assert 'mcasteij_gene_ensembl' in result.output
    assert 'Ortholog Partners: mouse, human' in result.output


@pytest.mark.parametrize("args,message", [
    (['zebrafish', '90'], 'zebrafish'),
    (['mouse', '79'], '79'),
])
def test_resolve_errors(test_config, args, message):
    runner = CliRunner()
    result = runner.invoke(cli, ['--config', str(test_config), 'resolve', *args])

    assert result.exit_code == 1
    assert 'Cannot resolve' in result.output
    assert message in result.output


def test_build_end_to_end(test_config, tmp_path):
    runner = CliRunner()

    with patch('refbundle.cli.build_cmd.fetch_genome', side_effect=fake_fetch_genome), \
            patch('refbundle.cli.build_cmd.fetch_gtf', side_effect=fake_fetch_gtf), \
            patch('refbundle.cli.build_cmd.build_indexes', return_value={}) as mock_indexes, \
            patch('refbundle.cli.build_cmd.fetch_table', side_effect=fake_fetch_table):
        result = runner.invoke(cli, [
            '--config', str(test_config),
            'build', 'mouse', '82', 'me@example.org',
            '--threads', '6',
        ])

    assert result.exit_code == 0, result.output
    assert 'Build complete!' in result.output

    bundle = tmp_path / 'bundles' / 'mouse_ensembl_82'
    seq_dir = bundle / 'primary_assembly'
    assert sorted(p.name for p in seq_dir.iterdir()) == ['1.fa', 'X.fa']
    assert (bundle / 'mouse_primary_assembly.fa').read_text() == ">1\nACGTACGT\n>X\nGGCC\n"

    # Patch-sequence records are dropped, ortholog tables are written as received
    assert (bundle / 'genes.tsv').read_text() == (
        "ENSMUSG1\tgene one\t1\tGene1\t11\tprotein_coding\n"
        "ENSMUSG3\tgene three\tX\tGene3\t\tlincRNA\n"
    )
    assert (bundle / 'transcripts.tsv').read_text() == "ENSMUST1\tprotein_coding\tENSMUSG1\t1\n"
    assert (bundle / 'human_orthologs.tsv').read_text() == BIOMART_RESPONSES['human_orthologs']
    assert not (bundle / 'mouse_orthologs.tsv').exists()

    assert (bundle / 'bundle.provenance.json').exists()

    index_config = mock_indexes.call_args.args[3]
    assert index_config.num_threads == 6


def test_build_passes_email_as_ftp_password(test_config):
    runner = CliRunner()

    with patch('refbundle.cli.build_cmd.fetch_genome', side_effect=fake_fetch_genome) as mock_genome, \
            patch('refbundle.cli.build_cmd.fetch_gtf', side_effect=fake_fetch_gtf), \
            patch('refbundle.cli.build_cmd.build_indexes', return_value={}), \
            patch('refbundle.cli.build_cmd.fetch_table', side_effect=fake_fetch_table):
        result = runner.invoke(cli, [
            '--config', str(test_config), 'build', 'mouse', '82', 'me@example.org',
        ])

    assert result.exit_code == 0, result.output
    assert mock_genome.call_args.kwargs['user'] == 'anonymous'
    assert mock_genome.call_args.kwargs['password'] == 'me@example.org'


@pytest.mark.parametrize("args", [
    ['zebrafish', '90', 'me@example.org'],
    ['mouse', '120', 'me@example.org'],
])
def test_build_invalid_input_has_no_side_effects(test_config, tmp_path, args):
    runner = CliRunner()

    with patch('refbundle.cli.build_cmd.fetch_genome') as mock_genome:
        result = runner.invoke(cli, ['--config', str(test_config), 'build', *args])

    assert result.exit_code == 1
    assert 'Build failed during configuration' in result.output
    mock_genome.assert_not_called()
    assert not (tmp_path / 'bundles').exists()
    assert not (tmp_path / 'cache').exists()


def test_build_transfer_failure_stops_build(test_config):
    runner = CliRunner()

    with patch('refbundle.cli.build_cmd.fetch_genome',
               side_effect=TransferFailure("Download of genome failed: 404")), \
            patch('refbundle.cli.build_cmd.fetch_gtf') as mock_gtf:
        result = runner.invoke(cli, [
            '--config', str(test_config), 'build', 'rat', '90', 'me@example.org',
        ])

    assert result.exit_code == 1
    assert 'Build failed during genome download' in result.output
    mock_gtf.assert_not_called()


def test_build_index_failure_skips_biomart(test_config):
    runner = CliRunner()

    with patch('refbundle.cli.build_cmd.fetch_genome', side_effect=fake_fetch_genome), \
            patch('refbundle.cli.build_cmd.fetch_gtf', side_effect=fake_fetch_gtf), \
            patch('refbundle.cli.build_cmd.build_indexes',
                  side_effect=IndexBuildFailure("STAR2.5.3a exited with status 1")), \
            patch('refbundle.cli.build_cmd.fetch_table') as mock_fetch:
        result = runner.invoke(cli, [
            '--config', str(test_config), 'build', 'mouse', '82', 'me@example.org',
        ])

    assert result.exit_code == 1
    assert 'Build failed during index build' in result.output
    assert 'STAR2.5.3a' in result.output
    mock_fetch.assert_not_called()


def test_build_ignores_sequence_files_from_earlier_run(test_config, tmp_path):
    seq_dir = tmp_path / 'bundles' / 'mouse_ensembl_82' / 'primary_assembly'
    seq_dir.mkdir(parents=True)
    (seq_dir / 'CHR_MG132_PATCH.fa').write_text(">CHR_MG132_PATCH\nACGT\n")
    runner = CliRunner()

    with patch('refbundle.cli.build_cmd.fetch_genome', side_effect=fake_fetch_genome), \
            patch('refbundle.cli.build_cmd.fetch_gtf', side_effect=fake_fetch_gtf), \
            patch('refbundle.cli.build_cmd.build_indexes', return_value={}), \
            patch('refbundle.cli.build_cmd.fetch_table', side_effect=fake_fetch_table):
        result = runner.invoke(cli, [
            '--config', str(test_config), 'build', 'mouse', '82', 'me@example.org',
        ])

    assert result.exit_code == 0, result.output
    bundle = tmp_path / 'bundles' / 'mouse_ensembl_82'
    assert 'CHR_MG132_PATCH' not in (bundle / 'genes.tsv').read_text()
    assert 'CHR_MG132_PATCH' not in (bundle / 'transcripts.tsv').read_text()
    assert sorted(p.name for p in seq_dir.iterdir()) == ['1.fa', 'X.fa']

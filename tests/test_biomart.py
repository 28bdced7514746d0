"""Tests for BioMart query building and the cached client."""

from unittest.mock import Mock, patch

import pytest
import requests

from refbundle.annotation.fetch import (
    QUERY_HEADER,
    build_ortholog_query,
    build_query_xml,
    fetch_table,
)
from refbundle.annotation.models import GENES_TABLE, TRANSCRIPTS_TABLE, ortholog_attributes
from refbundle.api_clients.base import BiomartClient
from refbundle.config import load_config
from refbundle.ensembl import build_plan
from refbundle.errors import TransferFailure, UnknownSpecies


def _response(text: str, from_cache: bool = False) -> Mock:
    response = Mock()
    response.status_code = 200
    response.text = text
    response.from_cache = from_cache
    response.raise_for_status = Mock()
    return response


# ============================================================================
# Query building
# ============================================================================

def test_gene_query_xml():
    xml = build_query_xml("mmusculus_gene_ensembl", GENES_TABLE)

    assert xml.startswith(QUERY_HEADER)
    assert '<Dataset name = "mmusculus_gene_ensembl" interface = "default" >' in xml
    assert "<Filter" not in xml
    assert xml.endswith("</Dataset></Query>")
    # Attribute order is the output column order
    positions = [xml.index(f'<Attribute name = "{a}" />') for a in GENES_TABLE.attributes]
    assert positions == sorted(positions)


def test_query_requests_tsv_without_header():
    xml = build_query_xml("hsapiens_gene_ensembl", TRANSCRIPTS_TABLE)

    assert 'formatter = "TSV"' in xml
    assert 'header = "0"' in xml


def test_chromosome_column_positions():
    """Genes carry the chromosome in column 3, transcripts in column 4."""
    assert GENES_TABLE.attributes.index(GENES_TABLE.chromosome_column) == 2
    assert TRANSCRIPTS_TABLE.attributes.index(TRANSCRIPTS_TABLE.chromosome_column) == 3


def test_ortholog_query_current_release():
    table = build_ortholog_query("rat", "mouse", 90)

    assert table.name == "mouse_orthologs"
    assert table.output_file == "mouse_orthologs.tsv"
    assert table.filters == ("with_mmusculus_homolog",)
    assert table.attributes == (
        "ensembl_gene_id",
        "mmusculus_homolog_ensembl_gene",
        "mmusculus_homolog_orthology_type",
    )
    assert table.chromosome_column is None


def test_ortholog_query_old_release_filter():
    table = build_ortholog_query("rat", "human", 80)

    assert table.filters == ("with_homolog_hsap",)

    xml = build_query_xml("rnorvegicus_gene_ensembl", table)
    assert '<Filter name = "with_homolog_hsap" excluded = "0"/>' in xml
    assert xml.index("<Filter") < xml.index("<Attribute")


def test_ortholog_query_against_self_rejected():
    with pytest.raises(ValueError):
        build_ortholog_query("mouse", "mouse", 90)


def test_ortholog_attributes_unknown_partner():
    with pytest.raises(UnknownSpecies):
        ortholog_attributes("dog")


# ============================================================================
# Client
# ============================================================================

def test_client_creates_cache_dir(tmp_path):
    """Test that client creates cache directory if it doesn't exist."""
    cache_dir = tmp_path / "nonexistent_cache"
    assert not cache_dir.exists()

    BiomartClient(cache_dir=cache_dir)

    assert cache_dir.is_dir()


def test_query_sends_xml_as_parameter(tmp_path):
    client = BiomartClient(cache_dir=tmp_path / "cache")

    with patch.object(client.session, "get") as mock_get:
        mock_get.return_value = _response("ENSG1\tdesc\t1\tA1\t1\tprotein_coding\n")
        text = client.query("http://www.ensembl.org/biomart/martservice", "<Query/>")

    assert text.startswith("ENSG1")
    args, kwargs = mock_get.call_args
    assert args == ("http://www.ensembl.org/biomart/martservice",)
    assert kwargs["params"] == {"query": "<Query/>"}
    assert kwargs["timeout"] == 300


def test_query_error_body_raises(tmp_path):
    client = BiomartClient(cache_dir=tmp_path / "cache")

    with patch.object(client.session, "get") as mock_get:
        mock_get.return_value = _response(
            "Query ERROR: caught BioMart::Exception::Usage: Filter with_homolog_mmus NOT FOUND\n"
        )
        with pytest.raises(TransferFailure, match="with_homolog_mmus"):
            client.query("http://www.ensembl.org/biomart/martservice", "<Query/>")


def test_http_error_raises_without_retry(tmp_path):
    client = BiomartClient(cache_dir=tmp_path / "cache")

    failing = _response("")
    failing.status_code = 500
    failing.raise_for_status.side_effect = requests.HTTPError("500 Server Error")

    with patch.object(client.session, "get", return_value=failing) as mock_get:
        with pytest.raises(TransferFailure, match="500"):
            client.get("http://www.ensembl.org/biomart/martservice")

    assert mock_get.call_count == 1


def test_connection_error_raises(tmp_path):
    client = BiomartClient(cache_dir=tmp_path / "cache")

    with patch.object(client.session, "get", side_effect=requests.ConnectionError("refused")):
        with pytest.raises(TransferFailure, match="refused"):
            client.get("http://feb2014.archive.ensembl.org/biomart/martservice")


def test_client_from_config(tmp_path):
    """Test creating client from PipelineConfig."""
    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(f"""
output_dir: {tmp_path / "bundles"}
cache_dir: {tmp_path / "cache"}
biomart:
  cache_ttl_seconds: 3600
  timeout_seconds: 60
""")
    config = load_config(config_file)

    client = BiomartClient.from_config(config)

    assert client.cache_dir == tmp_path / "cache"
    assert client.timeout == 60
    assert (tmp_path / "cache").is_dir()


def test_fetch_table_uses_plan_host_and_dataset(tmp_path):
    plan = build_plan("mouse", 82)
    client = BiomartClient(cache_dir=tmp_path / "cache")

    with patch.object(client, "query", return_value="ENSMUST1\tprotein_coding\tENSMUSG1\t1\n") as mock_query:
        text = fetch_table(client, plan, TRANSCRIPTS_TABLE)

    assert text == "ENSMUST1\tprotein_coding\tENSMUSG1\t1\n"
    url, xml = mock_query.call_args.args
    assert url == "http://sep2015.archive.ensembl.org/biomart/martservice"
    assert '<Dataset name = "mmusculus_gene_ensembl"' in xml

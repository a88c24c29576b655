import pytest
from pipeline.abstract_etl.data_retriever import EnaObjectQuery
from utils.config_utils import (DEFAULT_CONFIG, ConfigLoaderError, ensure_directories, load_config,
                                parse_query_overrides, validate_config)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "sra_import_config.yaml"
    path.write_text(
        "accessions_file: resources/analysis_accessions.txt\n"
        "summary_path: output/summary.json\n"
        "queries:\n"
        "  STUDY_QUERY: SELECT xml FROM studies WHERE acc = :accession\n"
    )
    return str(path)


def test_load_config_fills_defaults(config_file):
    config = load_config(config_file)

    assert config["summary_path"] == "output/summary.json"
    assert config["retries"] == DEFAULT_CONFIG["retries"]
    assert config["entrez"] == {}
    assert "STUDY_QUERY" in config["queries"]


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigLoaderError, match="not found"):
        load_config(str(tmp_path / "missing.yaml"))


def test_load_config_missing_file_uses_default(tmp_path):
    default = {"accessions_file": "a.txt", "summary_path": "s.json"}

    assert load_config(str(tmp_path / "missing.yaml"), default_config=default) is default


def test_load_config_invalid_yaml(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("accessions_file: [unclosed\n")

    with pytest.raises(ConfigLoaderError, match="Error parsing YAML"):
        load_config(str(path))


def test_load_config_requires_mapping(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- one\n- two\n")

    with pytest.raises(ConfigLoaderError, match="mapping"):
        load_config(str(path))


def test_validate_config(config_file):
    validate_config(load_config(config_file))


def test_validate_config_missing_keys():
    with pytest.raises(ConfigLoaderError, match="summary_path"):
        validate_config({"accessions_file": "a.txt"})


@pytest.mark.parametrize("retries", [-1, "two", 1.5])
def test_validate_config_bad_retries(retries):
    with pytest.raises(ConfigLoaderError, match="retries"):
        validate_config({"accessions_file": "a.txt", "summary_path": "s.json", "retries": retries})


def test_parse_query_overrides():
    overrides = parse_query_overrides({"SAMPLE_QUERY": "SELECT 1, 2, 3"})

    assert overrides == {EnaObjectQuery.SAMPLE_QUERY: "SELECT 1, 2, 3"}
    assert parse_query_overrides(None) == {}


@pytest.mark.parametrize("queries, message", [
    ({"RUN_QUERY": "SELECT 1"}, "Unknown query 'RUN_QUERY'"),
    ({"STUDY_QUERY": "  "}, "cannot be empty"),
])
def test_parse_query_overrides_errors(queries, message):
    with pytest.raises(ConfigLoaderError, match=message):
        parse_query_overrides(queries)


def test_ensure_directories(tmp_path):
    summary_path = tmp_path / "output" / "nested" / "summary.json"

    ensure_directories({"summary_path": str(summary_path)}, ["summary_path"])

    assert summary_path.parent.is_dir()


def test_ensure_directories_missing_key():
    with pytest.raises(ConfigLoaderError, match="summary_path"):
        ensure_directories({}, ["summary_path"])

import pytest

from smartsave.config import DEFAULT_CONFIG, load_config, save_config


def test_defaults_when_missing(tmp_path):
    cfg = load_config(tmp_path / "nope.yaml")
    assert cfg == DEFAULT_CONFIG
    cfg["loaders"]["extra"] = "x"
    assert "extra" not in DEFAULT_CONFIG["loaders"]


def test_user_values_merge_with_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    save_config({"db_path": "mine.db", "loaders": {"bank": "pkg.Loader"}}, path)
    cfg = load_config(path)
    assert cfg["db_path"] == "mine.db"
    assert cfg["loaders"] == {"bank": "pkg.Loader", "csv": "smartsave.loaders.csv_loader.CSVLoader"}
    assert cfg["budget_thresholds"] == [50, 80, 90, 100]


def test_non_mapping_config(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        load_config(path)

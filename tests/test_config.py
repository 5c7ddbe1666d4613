import json
from pathlib import Path

import pytest
from pydantic import ValidationError
from reader_crawl.config import CrawlerConfig, load_config


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("reader_base_url: http://reader.local/\nconcurrency_limit: 3", ".yaml", None),
        (json.dumps({"reader_base_url": "http://reader.local", "concurrency_limit": 3}), ".json", None),
        ("concurrency_limit: 11", ".yaml", ValidationError),
        ("concurrency_limit: 0", ".yaml", ValidationError),
        ("unknown_option: 1", ".yaml", ValidationError),
        ("download_format: pdf", ".yaml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ("{broken", ".json", ValueError),
        ("reader_base_url: x", ".toml", ValueError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, CrawlerConfig)
        assert cfg.reader_endpoint == "http://reader.local"
        assert cfg.concurrency_limit == 3


def test_defaults_match_reader_service():
    cfg = CrawlerConfig()
    assert cfg.reader_endpoint == "https://r.jina.ai"
    assert cfg.concurrency_limit == 1
    assert cfg.retry_times == 5
    assert cfg.retry_delay == 5.0
    assert cfg.download_format == "json"


def test_load_config_without_default_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_config(None) == CrawlerConfig()


def test_load_config_reads_default_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("retry_times: 1\n", encoding="utf-8")
    assert load_config(None).retry_times == 1


def test_missing_explicit_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.yaml")


def test_config_is_frozen():
    cfg = CrawlerConfig()
    with pytest.raises(ValidationError):
        cfg.retry_times = 3

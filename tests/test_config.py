"""Tests for config load/save hardening and token resolution."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from highlight_review.config import (
    _config_to_dict,
    _dict_to_config,
    get_config_dir,
    get_db_path,
    load_config,
    resolve_readwise_token,
    save_config,
)
from highlight_review.models import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SNOOZE_WEEKS,
    MAX_PAGE_SIZE,
    MAX_SNOOZE_WEEKS,
    UserConfig,
)


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    path = tmp_path / "highlight-review" / "config.json"
    monkeypatch.setattr("highlight_review.config.get_config_path", lambda: path)
    return path


def test_db_path_sits_beside_config():
    with patch("highlight_review.config.user_config_dir", return_value="/tmp/hr-config"):
        assert str(get_config_dir()) == "/tmp/hr-config"
        assert get_db_path().name == "highlights.db"
        assert get_db_path().parent == get_config_dir()


def test_load_missing_file_returns_defaults(config_file):
    assert load_config() == UserConfig()


def test_load_invalid_json_returns_defaults(config_file):
    config_file.parent.mkdir(parents=True)
    config_file.write_text("{not json", encoding="utf-8")
    assert load_config() == UserConfig()


def test_load_non_object_returns_defaults(config_file):
    config_file.parent.mkdir(parents=True)
    config_file.write_text("[1, 2, 3]", encoding="utf-8")
    assert load_config() == UserConfig()


def test_save_then_load(config_file):
    config = UserConfig(
        readwise_token="tok",
        search_url="https://search.example.com/query",
        snooze_duration_weeks=8,
        page_size=50,
        snooze_key="z",
        last_fetch="2024-03-01T12:00:00+00:00",
        ascii_icons=True,
    )
    assert save_config(config) is True
    assert load_config() == config
    # No temp files left behind
    assert [p.name for p in config_file.parent.iterdir()] == ["config.json"]


def test_save_failure_returns_false(config_file):
    with patch("highlight_review.config.os.replace", side_effect=OSError("read-only")):
        assert save_config(UserConfig()) is False
    assert not config_file.exists()
    assert list(config_file.parent.iterdir()) == []


class TestDictToConfig:
    def test_wrong_types_fall_back(self):
        config = _dict_to_config(
            {
                "readwise_token": 123,
                "search_url": None,
                "snooze_duration_weeks": "4",
                "page_size": True,
                "ascii_icons": "yes",
                "version": "2",
            }
        )
        assert config == UserConfig()

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [(0, 1), (-5, 1), (3, 3), (MAX_SNOOZE_WEEKS + 10, MAX_SNOOZE_WEEKS)],
    )
    def test_snooze_weeks_are_clamped(self, raw, expected):
        assert _dict_to_config({"snooze_duration_weeks": raw}).snooze_duration_weeks == expected

    def test_page_size_is_clamped(self):
        assert _dict_to_config({"page_size": 10_000}).page_size == MAX_PAGE_SIZE
        assert _dict_to_config({}).page_size == DEFAULT_PAGE_SIZE

    def test_blank_keys_use_defaults(self):
        config = _dict_to_config({"snooze_key": "  ", "archive_key": "x", "open_url_key": 5})
        assert config.snooze_key == "s"
        assert config.archive_key == "x"
        assert config.open_url_key == "o"

    def test_search_url_is_stripped(self):
        assert _dict_to_config({"search_url": " https://x.test/ "}).search_url == "https://x.test/"

    def test_to_dict_clamps_out_of_range_values(self):
        data = _config_to_dict(UserConfig(snooze_duration_weeks=999, page_size=0))
        assert data["snooze_duration_weeks"] == MAX_SNOOZE_WEEKS
        assert data["page_size"] == 1
        assert json.loads(json.dumps(data)) == data

    def test_defaults(self):
        config = _dict_to_config({})
        assert config.snooze_duration_weeks == DEFAULT_SNOOZE_WEEKS


class TestResolveToken:
    def test_config_token_wins(self):
        config = UserConfig(readwise_token=" abc ")
        assert resolve_readwise_token(config, {"READWISE_TOKEN": "env"}) == "abc"

    def test_env_fallback(self):
        assert resolve_readwise_token(UserConfig(), {"READWISE_TOKEN": " env "}) == "env"

    def test_missing_everywhere(self):
        assert resolve_readwise_token(UserConfig(), {}) == ""

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("READWISE_TOKEN", "from-os")
        assert resolve_readwise_token(UserConfig()) == "from-os"

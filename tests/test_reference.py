"""Tests for reference data loading."""
import json

import orjson
import pandas as pd
import pytest

from vocabdeck.reference import (
    build_zipf_map,
    ensure_zipf_map,
    load_level_map,
    load_reference_maps,
    read_word_list,
)
from vocabdeck.tiers import decide_tier


class TestWordLists:

    def test_reads_trimmed_lowercase(self, temp_dir):
        path = temp_dir / "stop_en.txt"
        path.write_text("The\r\n  and \n\nOF\n", encoding="utf-8")
        assert read_word_list(path) == {"the", "and", "of"}

    def test_missing_file_is_empty_with_warning(self, temp_dir, caplog):
        assert read_word_list(temp_dir / "nope.txt") == set()
        assert "Word list not found" in caplog.text

    def test_unreadable_file_is_empty_with_warning(self, temp_dir, caplog):
        path = temp_dir / "stop_en.txt"
        path.write_bytes(b"the\n\xff\xfeand\n")
        assert read_word_list(path) == set()
        assert "Word list unreadable" in caplog.text


class TestLevelMap:

    def test_loads_entries_with_level(self, temp_dir):
        path = temp_dir / "cefr_map.json"
        path.write_text(json.dumps({
            "Glass": {"level": "A1", "pos": "noun"},
            "odd": {"pos": "adjective"},
            "boon": {"level": "C1"},
        }), encoding="utf-8")
        levels = load_level_map(path)
        assert levels == {"glass": {"level": "A1", "pos": "noun"}, "boon": {"level": "C1"}}

    def test_missing_file(self, temp_dir, caplog):
        assert load_level_map(temp_dir / "cefr_map.json") == {}
        assert "Level map not found" in caplog.text

    def test_malformed_file(self, temp_dir):
        path = temp_dir / "cefr_map.json"
        path.write_text("{not json", encoding="utf-8")
        assert load_level_map(path) == {}

    def test_not_an_object(self, temp_dir):
        path = temp_dir / "cefr_map.json"
        path.write_text("[1, 2]", encoding="utf-8")
        assert load_level_map(path) == {}

    def test_non_string_levels_dropped(self, temp_dir):
        path = temp_dir / "cefr_map.json"
        path.write_text(json.dumps({
            "glass": {"level": "A1"},
            "boon": {"level": 3},
            "run": {"level": ["A1"]},
            "wander": {"level": "  "},
        }), encoding="utf-8")
        levels = load_level_map(path)
        assert levels == {"glass": {"level": "A1"}}
        assert decide_tier(levels["glass"]["level"], 4.5, 0) == 2


class TestZipfMap:

    def test_build_prefers_zipf_column(self, temp_dir):
        xlsx = temp_dir / "SUBTLEX-US.xlsx"
        pd.DataFrame({
            "Word": ["The", "boon", "glass", None],
            "Zipf-value": [7.47, 2.9, None, 3.0],
            "Lg10WF": [6.18, 1.5, 3.3, 2.0],
        }).to_excel(xlsx, index=False)

        zipf = build_zipf_map(xlsx)
        assert zipf["the"] == pytest.approx(7.47)
        assert zipf["boon"] == pytest.approx(2.9)
        # no Zipf value: converted from Lg10WF
        assert zipf["glass"] == pytest.approx(3.3 - 1.707)
        assert len(zipf) == 3

    def test_ensure_builds_and_caches(self, temp_dir):
        xlsx = temp_dir / "SUBTLEX-US.xlsx"
        cache = temp_dir / "subtlex_zipf.json"
        pd.DataFrame({"Word": ["boon"], "Zipf": [2.9]}).to_excel(xlsx, index=False)

        zipf = ensure_zipf_map(cache, xlsx)
        assert zipf == {"boon": pytest.approx(2.9)}
        assert orjson.loads(cache.read_bytes()) == {"boon": pytest.approx(2.9)}

    def test_cache_wins_over_spreadsheet(self, temp_dir):
        cache = temp_dir / "subtlex_zipf.json"
        cache.write_bytes(orjson.dumps({"glass": 4.6}))
        # spreadsheet absent: the cache alone must suffice
        assert ensure_zipf_map(cache, temp_dir / "SUBTLEX-US.xlsx") == {"glass": 4.6}

    def test_empty_cache_is_rebuilt(self, temp_dir):
        cache = temp_dir / "subtlex_zipf.json"
        cache.write_bytes(b"{}")
        xlsx = temp_dir / "SUBTLEX-US.xlsx"
        pd.DataFrame({"Word": ["run"], "Zipf": [5.8]}).to_excel(xlsx, index=False)
        assert ensure_zipf_map(cache, xlsx) == {"run": pytest.approx(5.8)}

    def test_nothing_available(self, temp_dir, caplog):
        zipf = ensure_zipf_map(temp_dir / "subtlex_zipf.json", temp_dir / "SUBTLEX-US.xlsx")
        assert zipf == {}
        assert "Zipf fallback" in caplog.text

    def test_corrupt_spreadsheet(self, temp_dir, caplog):
        xlsx = temp_dir / "SUBTLEX-US.xlsx"
        xlsx.write_bytes(b"this is not a workbook")
        cache = temp_dir / "subtlex_zipf.json"

        assert ensure_zipf_map(cache, xlsx) == {}
        assert "unreadable" in caplog.text
        assert not cache.exists()

    def test_truncated_workbook(self, temp_dir):
        xlsx = temp_dir / "SUBTLEX-US.xlsx"
        # zip signature with nothing after it
        xlsx.write_bytes(b"PK\x03\x04" + b"\x00" * 16)
        assert ensure_zipf_map(temp_dir / "subtlex_zipf.json", xlsx) == {}


def test_load_reference_maps_from_empty_dir(settings):
    refs = load_reference_maps(settings)
    assert refs.levels == {}
    assert refs.zipf == {}
    assert refs.stop_words == set()
    assert refs.known_words == set()


def test_load_reference_maps(settings):
    (settings.data_dir / "stop_en.txt").write_text("the\n", encoding="utf-8")
    (settings.data_dir / "known.txt").write_text("cat\n", encoding="utf-8")
    settings.cefr_json.write_text(json.dumps({"boon": {"level": "C1"}}), encoding="utf-8")
    settings.zipf_json.write_bytes(orjson.dumps({"boon": 2.9}))

    refs = load_reference_maps(settings)
    assert refs.stop_words == {"the"}
    assert refs.known_words == {"cat"}
    assert refs.levels == {"boon": {"level": "C1"}}
    assert refs.zipf == {"boon": 2.9}

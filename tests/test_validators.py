from __future__ import annotations

from whatsalarm.frontend.state import ConfigState, read_config_file, write_config_file
from whatsalarm.frontend.validators import (
    detection_problems,
    parse_non_negative_int,
    parse_percent,
    validate_chat_name,
    validate_keyword,
)


def test_validate_keyword_trims_and_accepts() -> None:
    check = validate_keyword("  الغياب  ", ["تأخير"])
    assert check.value == "الغياب"
    assert check.error is None


def test_validate_keyword_rejects_blank_and_invisible() -> None:
    assert validate_keyword("   ").error
    assert validate_keyword("\N{ZERO WIDTH SPACE}\N{ARABIC TATWEEL}").error


def test_validate_keyword_rejects_normalized_duplicates() -> None:
    assert validate_keyword("URGENT", ["urgent"]).error
    assert validate_keyword("الغ\N{ARABIC TATWEEL}ياب", ["الغياب"]).error


def test_validate_chat_name() -> None:
    assert validate_chat_name(" Mom ", []).value == "Mom"
    assert validate_chat_name("", []).error
    assert validate_chat_name("Unknown", []).error
    assert validate_chat_name("Mom", ["Mom "]).error
    assert validate_chat_name("mom", ["Mom"]).value == "mom"


def test_parse_non_negative_int() -> None:
    assert parse_non_negative_int("42") == (42, None)
    assert parse_non_negative_int(" ") == (None, None)
    value, error = parse_non_negative_int("-1")
    assert value is None and error


def test_parse_percent() -> None:
    assert parse_percent("100") == (100, None)
    value, error = parse_percent("101")
    assert value is None and error


def test_config_state_section_creates_missing_levels() -> None:
    state = ConfigState()
    section = state.section("detection", "chat_filter")
    section["enabled"] = True

    assert state.data == {"detection": {"chat_filter": {"enabled": True}}}
    assert state.section("detection") is state.data["detection"]


def test_detection_problems_accepts_repository_shape() -> None:
    data = {"detection": {"keywords": ["الغياب"], "chat_filter": {"enabled": True, "mode": "active"}}}
    assert detection_problems(data) == []
    assert detection_problems({}) == []


def test_detection_problems_reports_each_issue() -> None:
    data = {"detection": {"keywords": ["ok", 3], "chat_filter": {"mode": "substring"}}}
    problems = detection_problems(data)

    assert len(problems) == 2
    assert "substring" in problems[1]
    assert detection_problems(None) == ["nothing loaded"]


def test_config_file_write_then_read(tmp_path) -> None:
    path = tmp_path / "config.json"
    write_config_file(path, {"detection": {"keywords": ["الغياب"]}})

    assert "الغياب" in path.read_text(encoding="utf-8")
    assert not (tmp_path / "config.json.tmp").exists()
    assert read_config_file(path) == ({"detection": {"keywords": ["الغياب"]}}, None)


def test_read_config_file_errors(tmp_path) -> None:
    data, error = read_config_file(tmp_path / "absent.json")
    assert data is None and "missing" in error

    broken = tmp_path / "broken.json"
    broken.write_text("{", encoding="utf-8")
    data, error = read_config_file(broken)
    assert data is None and error.startswith("broken.json line 1")

    listed = tmp_path / "list.json"
    listed.write_text("[]", encoding="utf-8")
    assert read_config_file(listed) == (None, "config root must be an object")

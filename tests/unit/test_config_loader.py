from __future__ import annotations
import pytest
from pathlib import Path
from colrecon.config.loader import ConfigError, load_registry, parse_registry


def test_load_registry_success(write_registry: Path):
    cfg = load_registry(write_registry)
    assert [f.id for f in cfg.schema] == ["email", "phone", "first_name", "last_name"]
    assert [f.id for f in cfg.schema.required_fields] == ["email", "first_name"]
    assert cfg.schema.get("email").description == "Primary contact email"
    assert cfg.schema.get("last_name").description == ""
    assert cfg.settings.preview_rows == 4
    assert cfg.settings.debounce_seconds == pytest.approx(0.1)
    assert cfg.settings.settle_seconds == pytest.approx(0.3)
    assert cfg.settings.fuzzy_threshold is None


def test_load_registry_missing_file(temp_workdir: Path):
    missing = temp_workdir / "config" / "not_exists.yml"
    with pytest.raises(ConfigError, match="config file not found"):
        load_registry(missing)


def test_load_registry_invalid_yaml(write_registry: Path):
    write_registry.write_text("fields: [\n  - id: x", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_registry(write_registry)


def test_load_registry_missing_required_key(write_registry: Path):
    # display_name を削除
    text = write_registry.read_text(encoding="utf-8").replace("    display_name: Phone\n", "")
    write_registry.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_registry(write_registry)
    assert "config validation failed" in str(e.value) and "required property" in str(e.value)


def test_load_registry_extra_field(write_registry: Path):
    text = write_registry.read_text(encoding="utf-8") + "\nextra_field: not_allowed\n"
    write_registry.write_text(text, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_registry(write_registry)
    assert "config validation failed" in str(e.value)


def test_load_registry_empty_file(write_registry: Path):
    write_registry.write_text("", encoding="utf-8")
    with pytest.raises(ConfigError, match="config validation failed"):
        load_registry(write_registry)


def test_parse_registry_duplicate_ids():
    data = {"fields": [{"id": "a", "display_name": "A"}, {"id": "a", "display_name": "A2"}]}
    with pytest.raises(ConfigError, match="duplicate field id 'a'"):
        parse_registry(data)


def test_parse_registry_defaults_settings():
    cfg = parse_registry({"fields": [{"id": "a", "display_name": "A", "required": True}]})
    assert cfg.settings.preview_rows == 4
    assert cfg.settings.debounce_ms == 100
    assert cfg.settings.settle_ms == 300
    assert cfg.schema.get("a").required is True


@pytest.mark.parametrize(
    "settings",
    [
        {"preview_rows": 0},
        {"debounce_ms": -1},
        {"fuzzy_threshold": 101},
        {"unknown": 1},
    ],
)
def test_parse_registry_rejects_bad_settings(settings: dict):
    with pytest.raises(ConfigError, match="config validation failed"):
        parse_registry({"fields": [{"id": "a", "display_name": "A"}], "settings": settings})


def test_parse_registry_requires_fields():
    with pytest.raises(ConfigError, match="config validation failed"):
        parse_registry({"fields": []})

import pytest

from mjml_toolkit.config import ConfigManager
from mjml_toolkit.core.schema import ComponentSchema, reset_default_schema


@pytest.fixture
def user_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("MJML_TOOLKIT_CONFIG_DIR", str(tmp_path))
    ConfigManager.reset()
    yield tmp_path
    ConfigManager.reset()
    reset_default_schema()


def test_singleton():
    assert ConfigManager() is ConfigManager()


def test_packaged_defaults_are_copied_to_user_dir(user_dir):
    ConfigManager()
    for name in ("component_schema.yml", "head_defaults.yml", "editor.yml", "logging.yml"):
        assert (user_dir / name).exists()


def test_user_overrides_merge_per_section(user_dir):
    (user_dir / "editor.yml").write_text("sync:\n  debounce_ms: 250\n", encoding="utf-8")
    (user_dir / "component_schema.yml").write_text(
        "mj-text:\n  default_content: Write here\n", encoding="utf-8"
    )

    cfg = ConfigManager()
    assert cfg.get_editor_value("sync", "debounce_ms") == 250
    assert cfg.get_editor_value("drag", "before_threshold") == 0.3

    schema = ComponentSchema.from_config(cfg.get_component_schema())
    assert schema.create_node("mj-text").content == "Write here"
    # Keys not overridden are kept one level deep
    assert schema.is_raw_content("mj-text")


def test_invalid_user_yaml_falls_back_to_packaged(user_dir):
    (user_dir / "editor.yml").write_text("sync: [unclosed\n", encoding="utf-8")
    assert ConfigManager().get_editor_value("sync", "debounce_ms") == 500


def test_get_editor_value_default():
    cfg = ConfigManager()
    assert cfg.get_editor_value("nope", "key", "fallback") == "fallback"
    assert cfg.get_head_defaults()["default_styles"]

import logging
import logging.config

from lesson_composer.config import ConfigManager
from lesson_composer import logging_config
from lesson_composer.core.models import create_block, create_constructor


def test_singleton_until_reset():
    first = ConfigManager()
    assert ConfigManager() is first
    ConfigManager.reset()
    assert ConfigManager() is not first


def test_packaged_defaults_are_loaded():
    cfg = ConfigManager()
    assert cfg.get_logging_config().get("version") == 1
    assert set(cfg.get_block_defaults()) == {"text", "header", "image", "quiz", "columns"}
    assert cfg.get_editor_setting("empty_canvas_id") == "empty-canvas"
    assert cfg.get_editor_setting("columns_container_prefix") == "columns:"
    assert cfg.get_editor_setting("missing", "fallback") == "fallback"


def test_user_overrides_are_merged(isolated_config):
    (isolated_config / "editor.yml").write_text("default_constructor_cells: 3\n", encoding="utf-8")
    ConfigManager.reset()
    cfg = ConfigManager()
    assert cfg.get_editor_setting("default_constructor_cells") == 3
    assert cfg.get_editor_setting("default_columns") == 2
    assert len(create_constructor().cells) == 3


def test_block_default_override_reaches_factory(isolated_config):
    (isolated_config / "block_defaults.yml").write_text(
        "text:\n  title: Note\n  payload:\n    body: '<p>hi</p>'\n", encoding="utf-8"
    )
    ConfigManager.reset()
    block = create_block("text")
    assert block.title == "Note"
    assert block.payload == {"body": "<p>hi</p>"}


def test_invalid_user_file_is_ignored(isolated_config):
    (isolated_config / "editor.yml").write_text("default_columns: [unclosed\n", encoding="utf-8")
    ConfigManager.reset()
    assert ConfigManager().get_editor_setting("default_columns") == 2


def test_setup_logging_points_file_handler_at_log_dir(tmp_path, monkeypatch):
    captured = {}
    monkeypatch.setenv("LESSON_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.setattr(logging.config, "dictConfig", lambda cfg: captured.update(cfg))

    logging_config.setup_logging()

    assert captured["handlers"]["file"]["filename"] == str(tmp_path / "logs" / "app.log")
    assert (tmp_path / "logs").is_dir()
    # cached configuration keeps the packaged path
    assert ConfigManager().get_logging_config()["handlers"]["file"]["filename"] == "logs/app.log"


def test_debug_mutations_override(tmp_path, monkeypatch):
    monkeypatch.setenv("LESSON_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("LESSON_DEBUG_MUTATIONS", "true")
    monkeypatch.setattr(logging.config, "dictConfig", lambda cfg: None)
    targets = [logging.getLogger(name) for name in logging_config._MUTATION_LOGGERS]
    saved = [(t, t.level, list(t.handlers)) for t in targets]
    try:
        logging_config.setup_logging()
        assert all(t.level == logging.DEBUG for t in targets)
    finally:
        for target, level, handlers in saved:
            target.setLevel(level)
            target.handlers = handlers

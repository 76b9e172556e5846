import asyncio

import pytest

from cssg.build import BuildError, BuildResult
from cssg.config import load_config
from cssg.rebuild import BuildExecutor, OutcomeKind, classify, stylesheet_url


def fake_builder(calls):
    def build(config, mode="prod"):
        calls.append((config, mode))
        return BuildResult(pages=[], output_dir=config.output_dir, data={})

    return build


def test_stylesheet_url(monkeypatch, tmp_path):
    monkeypatch.delenv("BASE_PATH", raising=False)
    config = load_config(tmp_path)
    assert stylesheet_url(config.assets_dir / "css" / "style.css", config) == "/assets/css/style.css"
    assert stylesheet_url(config.public_dir / "theme.css", config) == "/theme.css"
    assert stylesheet_url(config.root / "extra" / "x.css", config) == "/extra/x.css"
    assert stylesheet_url("styles/app.css", config) == "/styles/app.css"

    monkeypatch.setenv("BASE_PATH", "/docs")
    assert stylesheet_url(config.assets_dir / "style.css", config) == "/docs/assets/style.css"


def test_classify(tmp_path):
    config = load_config(tmp_path)
    css = str(config.assets_dir / "css" / "b.css")
    other = str(config.assets_dir / "css" / "a.css")
    outcome = classify([css, other], config)
    assert outcome.kind is OutcomeKind.STYLE_UPDATE
    assert outcome.style_paths == ("/assets/css/a.css", "/assets/css/b.css")
    assert [m.encode() for m in outcome.messages] == [
        '{"type": "css-update", "path": "/assets/css/a.css"}',
        '{"type": "css-update", "path": "/assets/css/b.css"}',
    ]

    mixed = classify([css, str(config.pages_dir / "index.jinja")], config)
    assert mixed.kind is OutcomeKind.FULL_RELOAD
    assert [m.encode() for m in mixed.messages] == ["reload"]
    assert classify([], config).kind is OutcomeKind.FULL_RELOAD


def test_executor_runs_dev_build(tmp_path, capsys):
    calls = []
    config = load_config(tmp_path)
    executor = BuildExecutor(config, fake_builder(calls))
    outcome = asyncio.run(executor.run({str(config.pages_dir / "index.jinja")}))
    assert calls == [(config, "dev")]
    assert outcome.ok
    assert outcome.kind is OutcomeKind.FULL_RELOAD
    assert outcome.duration >= 0
    out = capsys.readouterr().out
    assert "Rebuilding due to changes:" in out
    assert "Rebuild completed in" in out


def test_executor_reports_failure(tmp_path, capsys):
    config = load_config(tmp_path)

    def failing(config, mode="prod"):
        raise BuildError(config.pages_dir / "index.jinja", "Undefined variable: x")

    executor = BuildExecutor(config, failing)
    outcome = asyncio.run(executor.run({"src/pages/index.jinja"}))
    assert outcome.kind is OutcomeKind.FAILED
    assert not outcome.ok
    assert outcome.messages == []
    assert isinstance(outcome.error, BuildError)
    err = capsys.readouterr().err
    assert "Build failed:" in err
    assert "Triggered by: src/pages/index.jinja" in err
    assert "Undefined variable: x" in err


def test_executor_survives_unexpected_errors(tmp_path):
    def crashing(config, mode="prod"):
        raise RuntimeError("disk full")

    outcome = asyncio.run(BuildExecutor(load_config(tmp_path), crashing).run({"a.jinja"}))
    assert outcome.kind is OutcomeKind.FAILED


def test_executor_reloads_config(tmp_path, capsys):
    calls = []
    config = load_config(tmp_path)
    executor = BuildExecutor(config, fake_builder(calls))
    config.config_path.write_text("port: 4000\noutput_dir: out\n", encoding="utf-8")

    asyncio.run(executor.run({str(config.config_path)}))

    assert executor.config.port == 4000
    assert executor.config.output_dir == config.root / "out"
    assert calls[0][0] is executor.config
    assert "Configuration reloaded." in capsys.readouterr().out


def test_executor_keeps_config_when_reload_fails(tmp_path, capsys):
    calls = []
    config = load_config(tmp_path)
    executor = BuildExecutor(config, fake_builder(calls))
    config.config_path.write_text("port: [oops\n", encoding="utf-8")

    outcome = asyncio.run(executor.run({str(config.config_path)}))

    assert executor.config is config
    assert outcome.ok
    assert "Config reload failed, keeping previous config" in capsys.readouterr().err


@pytest.mark.parametrize("changed", [{"notes.md"}, {"src/pages/cssg.yaml"}])
def test_executor_ignores_other_yaml(tmp_path, changed):
    config = load_config(tmp_path)
    config.config_path.write_text("port: 4000\n", encoding="utf-8")
    executor = BuildExecutor(config, fake_builder([]))
    asyncio.run(executor.run(changed))
    assert executor.config is config

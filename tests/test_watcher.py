from pathlib import Path

import pytest

from cssg.config import load_config
from cssg.watcher import ChangeEvent, ChangeFilter, ChangeKind, WatchdogBridge


class DummyEvent:
    def __init__(self, event_type, src_path, dest_path="", is_directory=False):
        self.event_type = event_type
        self.src_path = src_path
        self.dest_path = dest_path
        self.is_directory = is_directory


def test_change_event_requires_paths():
    with pytest.raises(ValueError):
        ChangeEvent(ChangeKind.MODIFY, frozenset())


def test_filter_drops_output_dir(tmp_path):
    config = load_config(tmp_path)
    change_filter = ChangeFilter.for_config(config)
    source = str(config.pages_dir / "index.jinja")
    built = str(config.output_dir / "index.html")
    event = ChangeEvent(ChangeKind.MODIFY, frozenset({source, built}))
    assert change_filter.filter(event) == {source}
    only_output = ChangeEvent(ChangeKind.CREATE, frozenset({built}))
    assert change_filter.filter(only_output) == set()


def test_filter_drops_access_events(tmp_path):
    event = ChangeEvent(ChangeKind.ACCESS, frozenset({str(tmp_path / "index.jinja")}))
    assert ChangeFilter().filter(event) == set()


@pytest.mark.parametrize(
    "rel",
    [
        ".git/index",
        "node_modules/pkg/index.js",
        "src/__pycache__/x.pyc",
        "src/.DS_Store",
        "src/pages/.index.jinja.swp",
        "src/pages/index.jinja~",
        "debug.log",
    ],
)
def test_filter_ignores_noise(tmp_path, rel):
    assert ChangeFilter().is_ignored(tmp_path / rel)


def test_filter_keeps_sources(tmp_path):
    change_filter = ChangeFilter([tmp_path / "dist"])
    assert not change_filter.is_ignored(tmp_path / "src" / "assets" / "css" / "style.css")
    assert not change_filter.is_ignored(tmp_path / "cssg.yaml")
    assert not change_filter.is_ignored(tmp_path / "distribution" / "notes.md")


def test_bridge_translates_events(tmp_path):
    received = []
    bridge = WatchdogBridge(received.append)

    bridge.on_any_event(DummyEvent("modified", str(tmp_path / "a.css")))
    bridge.on_any_event(DummyEvent("moved", str(tmp_path / "a.tmp"), str(tmp_path / "a.jinja")))
    bridge.on_any_event(DummyEvent("opened", str(tmp_path / "a.css")))
    bridge.on_any_event(DummyEvent("modified", str(tmp_path / "dir"), is_directory=True))

    assert received[0] == ChangeEvent(ChangeKind.MODIFY, frozenset({str(tmp_path / "a.css")}))
    assert received[1].kind is ChangeKind.MODIFY
    assert received[1].paths == frozenset({str(tmp_path / "a.tmp"), str(tmp_path / "a.jinja")})
    assert received[2].kind is ChangeKind.ACCESS
    assert len(received) == 3


def test_bridge_decodes_bytes_paths(tmp_path):
    received = []
    WatchdogBridge(received.append).on_any_event(
        DummyEvent("deleted", str(tmp_path / "x.md").encode())
    )
    assert received[0].kind is ChangeKind.REMOVE
    assert received[0].paths == frozenset({str(Path(tmp_path) / "x.md")})

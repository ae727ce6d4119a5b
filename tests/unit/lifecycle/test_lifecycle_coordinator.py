from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from devmirror.core.exceptions import DescriptorWriteError
from devmirror.core.host import HostEvents, ResolvedConfig, ServerOptions
from devmirror.core.lifecycle import LifecycleCoordinator, SessionState
from devmirror.core.patterns import FilterSpec
from helpers.fake_host import FakeDevServer
from helpers.tree import snapshot


@pytest.fixture
def session(tmp_path: Path):
    out = tmp_path / "backend" / "target" / "classes"
    descriptor = tmp_path / "backend" / "target" / "devmirror" / "dev-server-config.json"
    coordinator = LifecycleCoordinator(out, descriptor)
    events = HostEvents()
    coordinator.attach(events)
    return coordinator, events, out, descriptor


def _read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_configure_server_syncs_then_writes_provisional_descriptor(session, fake_server: FakeDevServer) -> None:
    coordinator, events, out, descriptor = session

    events.emit_config_resolved(fake_server.config)
    events.emit_configure_server(fake_server)

    assert set(snapshot(out)) == {"index.html", "templates/page.html", "images/logo.svg"}
    assert _read(descriptor) == {"protocol": "http", "host": "localhost", "port": 5173}
    assert coordinator.state is SessionState.SERVER_STARTING
    assert fake_server.pending_listeners == 1


def test_listening_confirms_actual_port(session, fake_server: FakeDevServer) -> None:
    coordinator, events, _, descriptor = session
    events.emit_config_resolved(fake_server.config)
    events.emit_configure_server(fake_server)

    fake_server.fire_listening(5174)

    assert _read(descriptor) == {"protocol": "http", "host": "localhost", "port": 5174}
    assert coordinator.state is SessionState.SERVER_RUNNING
    assert fake_server.pending_listeners == 0


def test_descriptor_deleted_before_listening_is_tolerated(session, fake_server: FakeDevServer, caplog) -> None:
    caplog.set_level(logging.ERROR, logger="devmirror")
    coordinator, events, _, descriptor = session
    events.emit_config_resolved(fake_server.config)
    events.emit_configure_server(fake_server)
    descriptor.unlink()

    fake_server.fire_listening(5174)

    assert not descriptor.exists()
    assert any(r.levelno == logging.ERROR for r in caplog.records)
    # Session keeps reacting to changes afterwards.
    assert events.emit_file_change(fake_server.root / "index.html", fake_server) is None
    assert fake_server.reloads == [str(fake_server.root / "index.html")]


def test_matching_change_copies_once_and_reloads_once(session, fake_server: FakeDevServer) -> None:
    coordinator, events, out, _ = session
    changed = fake_server.root / "index.html"
    changed.write_text("<html>v2</html>", encoding="utf-8")

    events.emit_file_change(changed, fake_server)

    assert snapshot(out) == {"index.html": b"<html>v2</html>"}
    assert fake_server.reloads == [str(changed)]


def test_non_matching_change_is_ignored(session, fake_server: FakeDevServer) -> None:
    coordinator, events, out, _ = session

    handled = coordinator.file_change(fake_server.root / "notes.txt", fake_server)

    assert handled is False
    assert not out.exists()
    assert fake_server.reloads == []


def test_change_reactions_work_before_server_is_listening(session, fake_server: FakeDevServer) -> None:
    coordinator, events, out, _ = session
    events.emit_config_resolved(fake_server.config)
    events.emit_configure_server(fake_server)
    (fake_server.root / "templates" / "page.html").write_text("new", encoding="utf-8")

    assert coordinator.file_change(fake_server.root / "templates" / "page.html", fake_server)

    assert (out / "templates" / "page.html").read_text(encoding="utf-8") == "new"
    assert coordinator.state is SessionState.SERVER_STARTING


def test_change_for_deleted_file_logs_and_skips_reload(session, fake_server: FakeDevServer, caplog) -> None:
    caplog.set_level(logging.ERROR, logger="devmirror")
    coordinator, _, _, _ = session

    handled = coordinator.file_change(fake_server.root / "removed.html", fake_server)

    assert handled is False
    assert fake_server.reloads == []
    assert any("removed.html" in r.getMessage() for r in caplog.records)


def test_change_inside_nested_output_dir_is_ignored(tmp_path: Path, asset_root: Path) -> None:
    out = asset_root / "target" / "classes"
    coordinator = LifecycleCoordinator(out, tmp_path / "d.json")
    server = FakeDevServer(root=asset_root)
    out.mkdir(parents=True)
    (out / "index.html").write_text("copy", encoding="utf-8")

    assert coordinator.file_change(out / "index.html", server) is False
    assert server.reloads == []


def test_build_end_syncs_without_descriptor(session, asset_root: Path) -> None:
    coordinator, events, out, descriptor = session
    events.emit_config_resolved(ResolvedConfig(root=asset_root))

    events.emit_build_end()

    assert coordinator.state is SessionState.DONE
    assert coordinator.last_report is not None and coordinator.last_report.count == 3
    assert set(snapshot(out)) == {"index.html", "templates/page.html", "images/logo.svg"}
    assert not descriptor.exists()


def test_build_end_without_config_is_a_no_op(session, caplog) -> None:
    caplog.set_level(logging.WARNING, logger="devmirror")
    coordinator, events, out, _ = session

    events.emit_build_end()

    assert coordinator.state is SessionState.IDLE
    assert not out.exists()


def test_filter_is_built_once_per_session(session, fake_server: FakeDevServer) -> None:
    coordinator, events, _, _ = session
    events.emit_config_resolved(fake_server.config)
    events.emit_configure_server(fake_server)

    first = coordinator.path_filter(fake_server.root)
    events.emit_file_change(fake_server.root / "index.html", fake_server)
    events.emit_file_change(fake_server.root / "notes.txt", fake_server)

    assert coordinator.path_filter(fake_server.root) is first


def test_custom_filter_spec_is_honoured(tmp_path: Path, asset_root: Path) -> None:
    out = tmp_path / "out"
    coordinator = LifecycleCoordinator(
        out,
        tmp_path / "d.json",
        filter_spec=FilterSpec(include_patterns=("**/*.png",), exclude_patterns=()),
    )
    server = FakeDevServer(root=asset_root)

    assert coordinator.file_change(asset_root / "images" / "photo.png", server)
    assert not coordinator.file_change(asset_root / "index.html", server)
    assert snapshot(out) == {"images/photo.png": b"binary-ish"}


def test_descriptor_uses_resolved_hot_update_settings(session, asset_root: Path) -> None:
    from devmirror.core.host import HmrOptions

    coordinator, events, _, descriptor = session
    server = FakeDevServer(
        root=asset_root,
        server=ServerOptions(host="localhost", port=5173, hmr=HmrOptions(protocol="wss", host="proxy.test", port=443)),
    )
    events.emit_config_resolved(server.config)
    events.emit_configure_server(server)

    assert _read(descriptor) == {"protocol": "https", "host": "proxy.test", "port": 443}


def test_unwritable_descriptor_propagates_to_host(tmp_path: Path, asset_root: Path) -> None:
    blocker = tmp_path / "target"
    blocker.write_text("file, not dir", encoding="utf-8")
    coordinator = LifecycleCoordinator(tmp_path / "out", blocker / "devmirror" / "d.json")
    server = FakeDevServer(root=asset_root)

    with pytest.raises(DescriptorWriteError):
        coordinator.configure_server(server)
    # The mirror ran before the descriptor write failed.
    assert (tmp_path / "out" / "index.html").exists()


def test_listening_keeps_hot_update_transport_port(session, asset_root: Path) -> None:
    from devmirror.core.host import HmrOptions

    coordinator, events, _, descriptor = session
    server = FakeDevServer(
        root=asset_root,
        server=ServerOptions(host="localhost", port=5173, hmr=HmrOptions(protocol="wss", host="proxy.test", port=443)),
    )
    events.emit_config_resolved(server.config)
    events.emit_configure_server(server)

    server.fire_listening(5174)

    assert _read(descriptor) == {"protocol": "https", "host": "proxy.test", "port": 443}
    assert coordinator.state is SessionState.SERVER_RUNNING


def test_listening_confirms_port_when_only_transport_host_is_overridden(session, asset_root: Path) -> None:
    from devmirror.core.host import HmrOptions

    coordinator, events, _, descriptor = session
    server = FakeDevServer(
        root=asset_root,
        server=ServerOptions(host="localhost", port=5173, hmr=HmrOptions(host="dev.test")),
    )
    events.emit_config_resolved(server.config)
    events.emit_configure_server(server)

    server.fire_listening(5174)

    assert _read(descriptor) == {"protocol": "http", "host": "dev.test", "port": 5174}

import asyncio
import json
import logging
from pathlib import Path

import httpx
import pytest

from flowscript.core.types import NodeKind
from flowscript.editor import EditorSession
from flowscript.errors import UnknownSession
from flowscript.server.collaborators import FileScriptStore, RemoteScriptRunner, script_slug
from flowscript.server.config import Settings
from flowscript.server.events.socket_server import make_broadcaster
from flowscript.server.state import SessionRegistry


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.port == 3001
        assert settings.scripts_dir == Path("scripts")
        assert settings.runner_url is None
        assert settings.cors_origins == ["*"]

    def test_reads_prefixed_variables(self):
        settings = Settings.from_env({
            "FLOWSCRIPT_PORT": "8080",
            "FLOWSCRIPT_RUNNER_URL": "http://runner:4000/run",
            "FLOWSCRIPT_RUNNER_TIMEOUT": "12.5",
            "FLOWSCRIPT_CORS_ORIGINS": "http://a.test, http://b.test",
            "FLOWSCRIPT_LOG_LEVEL": "debug",
        })
        assert settings.port == 8080
        assert settings.runner_url == "http://runner:4000/run"
        assert settings.runner_timeout == 12.5
        assert settings.cors_origins == ["http://a.test", "http://b.test"]
        assert settings.log_level == "DEBUG"

    def test_bad_port(self):
        with pytest.raises(ValueError, match="FLOWSCRIPT_"):
            Settings.from_env({"FLOWSCRIPT_PORT": "eighty"})

    def test_missing_runner_is_logged(self, caplog):
        caplog.set_level(logging.WARNING)
        Settings.from_env({})
        assert "FLOWSCRIPT_RUNNER_URL" in caplog.text


class TestSessionRegistry:

    def test_create_get_drop(self):
        registry = SessionRegistry()
        session = registry.create("Flow")
        assert registry.get(session.id) is session
        assert len(registry) == 1
        registry.drop(session.id)
        assert len(registry) == 0
        with pytest.raises(UnknownSession):
            registry.get(session.id)

    def test_listeners_are_attached_to_new_sessions(self):
        seen = []
        registry = SessionRegistry(listeners=[seen.append])
        session = registry.create()
        session.add_node(NodeKind.CLICK)
        assert [e["type"] for e in seen] == ["NODE_ADDED"]


class TestFileScriptStore:

    @pytest.mark.parametrize(
        "name, slug",
        [
            ("My Selenium Script", "my-selenium-script"),
            ("Login Flow / v2", "login-flow-v2"),
            ("Тест Поиска", "тест-поиска"),
        ],
    )
    def test_slug(self, name, slug):
        assert script_slug(name) == slug

    def test_slug_without_usable_characters(self):
        assert script_slug("///") == "script"

    def test_writes_script_and_document(self, tmp_path):
        session = EditorSession(script_name="Login Flow")
        store = FileScriptStore(tmp_path / "scripts")
        result = asyncio.run(session.save(store))

        script_path = Path(result["path"])
        assert script_path == tmp_path / "scripts" / "login-flow.py"
        assert script_path.read_text(encoding="utf-8") == session.generate_code(headless=True)
        document = json.loads((tmp_path / "scripts" / "login-flow.json").read_text(encoding="utf-8"))
        assert document == {"name": "Login Flow", **session.export_document()}
        assert store.list_names() == ["Login Flow"]
        assert store.load_document("login-flow") == document
        assert store.load_document("missing") is None

    def test_stored_document_imports(self, tmp_path):
        session = EditorSession(script_name="Login Flow")
        session.add_node(NodeKind.CLICK, params={"selector": "#go"})
        store = FileScriptStore(tmp_path)
        asyncio.run(session.save(store))

        other = EditorSession()
        other.import_document(store.load_document("login-flow"))
        assert other.export_document() == session.export_document()

    def test_non_ascii_name_is_saved(self, tmp_path):
        session = EditorSession(script_name="Тест")
        store = FileScriptStore(tmp_path)
        result = asyncio.run(session.save(store))
        assert Path(result["path"]).name == "тест.py"
        assert store.list_names() == ["Тест"]

    def test_names_sharing_a_slug_do_not_overwrite(self, tmp_path):
        store = FileScriptStore(tmp_path)
        first = EditorSession(script_name="Login Flow")
        second = EditorSession(script_name="login-flow")
        second.add_node(NodeKind.END)

        first_path = Path(asyncio.run(first.save(store))["path"])
        second_path = Path(asyncio.run(second.save(store))["path"])

        assert first_path.name == "login-flow.py"
        assert second_path.name == "login-flow-2.py"
        assert store.list_names() == ["Login Flow", "login-flow"]
        first_nodes = [n["id"] for n in store.load_document("login-flow")["nodes"]]
        assert first_nodes == ["start-node"]

    def test_saving_same_name_again_overwrites(self, tmp_path):
        store = FileScriptStore(tmp_path)
        session = EditorSession(script_name="Login Flow")
        asyncio.run(session.save(store))
        session.add_node(NodeKind.END)
        path = Path(asyncio.run(session.save(store))["path"])

        assert path.name == "login-flow.py"
        assert sorted(p.name for p in tmp_path.iterdir()) == ["login-flow.json", "login-flow.py"]
        assert len(store.load_document("login-flow")["nodes"]) == 2

    def test_list_names_without_directory(self, tmp_path):
        assert FileScriptStore(tmp_path / "absent").list_names() == []


class TestRemoteScriptRunner:

    def test_posts_script(self, monkeypatch):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"success": True})

        _mock_transport(monkeypatch, handler)
        runner = RemoteScriptRunner("http://runner.test/run")
        assert asyncio.run(runner("print(1)\n")) == {"success": True}
        assert seen == {"url": "http://runner.test/run", "body": {"script": "print(1)\n"}}

    def test_error_status_raises(self, monkeypatch):
        _mock_transport(monkeypatch, lambda request: httpx.Response(500, json={}))
        runner = RemoteScriptRunner("http://runner.test/run")
        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(runner("print(1)\n"))


def _mock_transport(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_client(*args, **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)


class FakeSocketServer:
    def __init__(self):
        self.emitted = []

    async def emit(self, event, data, room=None):
        self.emitted.append((event, data, room))


class TestBroadcaster:

    def test_events_go_to_the_session_room(self):
        sio = FakeSocketServer()
        session = EditorSession(session_id="abc")
        session.events.on_event(make_broadcaster(sio))

        async def edit():
            session.add_node(NodeKind.CLICK)
            await asyncio.sleep(0)

        asyncio.run(edit())
        assert len(sio.emitted) == 1
        event, data, room = sio.emitted[0]
        assert event == "session_event"
        assert data["type"] == "NODE_ADDED"
        assert room == "abc"

    def test_without_loop_event_is_dropped(self):
        sio = FakeSocketServer()
        session = EditorSession(session_id="abc")
        session.events.on_event(make_broadcaster(sio))
        session.add_node(NodeKind.CLICK)
        assert sio.emitted == []

    def test_failed_emit_is_logged_and_released(self, caplog):
        class BrokenSocketServer:
            async def emit(self, event, data, room=None):
                raise ConnectionResetError("client went away")

        broadcaster = make_broadcaster(BrokenSocketServer())
        session = EditorSession(session_id="abc")
        session.events.on_event(broadcaster)

        async def edit():
            session.add_node(NodeKind.CLICK)
            await asyncio.sleep(0)
            await asyncio.sleep(0)

        asyncio.run(edit())
        assert broadcaster.pending == set()
        assert "client went away" in caplog.text
        assert "NODE_ADDED->abc" in caplog.text

    def test_emit_tasks_are_held_until_done(self):
        sio = FakeSocketServer()
        broadcaster = make_broadcaster(sio)
        session = EditorSession(session_id="abc")
        session.events.on_event(broadcaster)

        async def edit():
            session.add_node(NodeKind.CLICK)
            held = len(broadcaster.pending)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            return held

        assert asyncio.run(edit()) == 1
        assert broadcaster.pending == set()
        assert len(sio.emitted) == 1

from __future__ import annotations

from pathlib import Path

from fastapi.testclient import TestClient

from evomanager.app import create_app
from evomanager.models import Session
from evomanager.token_store import TokenId


def test_login_page_is_public_and_dashboard_requires_session(
    tmp_path: Path, monkeypatch, evolution_server
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.get("/manager/login")
        assert r.status_code == 200
        assert 'name="serverUrl"' in r.text
        # Defaults to the console's own origin.
        assert 'value="http://testserver"' in r.text

        r2 = client.get("/manager/instance/abc/dashboard", follow_redirects=False)
        assert r2.status_code == 302
        assert r2.headers["location"] == "/manager/login"

        r3 = client.get("/", follow_redirects=False)
        assert r3.headers["location"] == "/manager/login"

    assert evolution_server.requests == []


def test_manual_login_then_dashboard(
    tmp_path: Path, monkeypatch, evolution_server, single_instance
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.instances = [single_instance]

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.post(
            "/manager/login",
            data={"serverUrl": "https://evo.example.com/", "apiKey": "key-1"},
            follow_redirects=False,
        )
        assert r.status_code == 302
        assert r.headers["location"] == "/manager/instance/abc/dashboard"

        dash = client.get("/manager/instance/abc/dashboard")
        assert dash.status_code == 200
        assert "Main" in dash.text
        assert "1.2.0" in dash.text
        assert "tok1" not in dash.text

        index = client.get("/manager", follow_redirects=False)
        assert index.headers["location"] == "/manager/instance/abc/dashboard"

        other = client.get("/manager/instance/zzz/dashboard", follow_redirects=False)
        assert other.status_code == 302
        assert other.headers["location"] == "/manager/instance/abc/dashboard"

    assert evolution_server.paths() == ["/", "/instance/fetchInstances"]


def test_global_key_shows_key_error_and_writes_no_session(
    tmp_path: Path, monkeypatch, evolution_server, single_instance
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.instances = [single_instance, {**single_instance, "id": "def"}]

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.post(
            "/manager/login",
            data={"serverUrl": "https://evo.example.com", "apiKey": "global-key"},
        )
        assert r.status_code == 401
        assert 'data-field="apiKey">Global key detected' in r.text
        assert "global-key" not in r.text

        store = client.app.state.token_store
        assert store.read(TokenId.INSTANCE_ID) is None


def test_empty_instance_list_shows_invalid_credentials(
    tmp_path: Path, monkeypatch, evolution_server
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.instances = []

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.post(
            "/manager/login",
            data={"serverUrl": "https://evo.example.com", "apiKey": "key-1"},
        )
        assert r.status_code == 401
        assert 'data-field="apiKey">Invalid credentials' in r.text
        assert 'value="https://evo.example.com"' in r.text


def test_unreachable_server_shows_url_error_and_clears_session(
    tmp_path: Path, monkeypatch, evolution_server
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.info_unreachable = True

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        store = client.app.state.token_store
        store.save(
            Session(
                api_url="https://old.example.com",
                instance_token="old-token",
                instance_id="old",
                instance_name="Old",
                version="1.0.0",
            )
        )
        assert client.get("/manager/instance/old/dashboard").status_code == 200

        r = client.post(
            "/manager/login",
            data={"serverUrl": "https://evo.example.com", "apiKey": "key-1"},
        )
        assert r.status_code == 400
        assert 'data-field="serverUrl">Invalid server' in r.text

        after = client.get("/manager/instance/old/dashboard", follow_redirects=False)
        assert after.status_code == 302
        assert after.headers["location"] == "/manager/login"


def test_form_validation_runs_before_network(
    tmp_path: Path, monkeypatch, evolution_server
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.post("/manager/login", data={"serverUrl": "not a url", "apiKey": ""})
        assert r.status_code == 400
        assert 'data-field="serverUrl">Invalid URL' in r.text
        assert 'data-field="apiKey">API key is required' in r.text

        r2 = client.post("/manager/login", data={})
        assert r2.status_code == 400
        assert 'data-field="serverUrl">Server URL is required' in r2.text

    assert evolution_server.requests == []


def test_auto_login_from_query_params(
    tmp_path: Path, monkeypatch, evolution_server, single_instance
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.instances = [single_instance]

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.get(
            "/manager/login",
            params={"serverUrl": "https://evo.example.com/", "apiKey": "key-1"},
            follow_redirects=False,
        )
        assert r.status_code == 302
        assert r.headers["location"] == "/manager/instance/abc/dashboard"

        store = client.app.state.token_store
        assert store.read(TokenId.API_URL) == "https://evo.example.com/"

    assert evolution_server.paths() == ["/", "/instance/fetchInstances"]
    assert evolution_server.requests[1].headers["apikey"] == "key-1"


def test_auto_login_failure_renders_field_error(
    tmp_path: Path, monkeypatch, evolution_server
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.instances = []

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.get(
            "/manager/login",
            params={"serverUrl": "https://evo.example.com", "apiKey": "key-1"},
        )
        assert r.status_code == 401
        assert 'data-field="apiKey">Invalid credentials' in r.text
        assert 'value="https://evo.example.com"' in r.text


def test_auto_login_needs_both_params(tmp_path: Path, monkeypatch, evolution_server) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.get("/manager/login", params={"serverUrl": "https://evo.example.com"})
        assert r.status_code == 200

    assert evolution_server.requests == []


def test_logout_clears_session(
    tmp_path: Path, monkeypatch, evolution_server, single_instance
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.instances = [single_instance]

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        client.post(
            "/manager/login",
            data={"serverUrl": "https://evo.example.com", "apiKey": "key-1"},
        )

        r = client.post("/manager/logout", follow_redirects=False)
        assert r.status_code == 302
        assert r.headers["location"].startswith("/manager/login")

        dash = client.get("/manager/instance/abc/dashboard", follow_redirects=False)
        assert dash.status_code == 302


def test_session_file_survives_restart(
    tmp_path: Path, monkeypatch, evolution_server, single_instance
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    evolution_server.instances = [single_instance]

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        client.post(
            "/manager/login",
            data={"serverUrl": "https://evo.example.com", "apiKey": "key-1"},
        )

    assert (tmp_path / "config" / "session.json").exists()

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        dash = client.get("/manager/instance/abc/dashboard")
        assert dash.status_code == 200


def test_memory_store_from_config(tmp_path: Path, monkeypatch, evolution_server) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))
    config_dir = tmp_path / "config"
    config_dir.mkdir(parents=True)
    (config_dir / "manager.json").write_text('{"session": {"store": "memory"}}', encoding="utf-8")

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        assert type(client.app.state.token_store).__name__ == "InMemoryTokenStore"


def test_unparseable_server_url_on_form_is_field_error(
    tmp_path: Path, monkeypatch, evolution_server
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        r = client.post("/manager/login", data={"serverUrl": "http://[::1", "apiKey": "k"})
        assert r.status_code == 400
        assert 'data-field="serverUrl">Invalid URL' in r.text

    assert evolution_server.requests == []


def test_auto_login_validates_url_before_any_request(
    tmp_path: Path, monkeypatch, evolution_server
) -> None:
    monkeypatch.setenv("EVOMANAGER_HOME", str(tmp_path))

    with TestClient(create_app(transport=evolution_server.transport)) as client:
        store = client.app.state.token_store
        store.save(
            Session(
                api_url="https://old.example.com",
                instance_token="old-token",
                instance_id="old",
                instance_name="Old",
                version="1.0.0",
            )
        )

        for bad_url in ("not a url", "http://[::1"):
            r = client.get("/manager/login", params={"serverUrl": bad_url, "apiKey": "k"})
            assert r.status_code == 400
            assert 'data-field="serverUrl">Invalid URL' in r.text

        # Rejected input never reaches the server, so the old session stays.
        assert store.read(TokenId.INSTANCE_ID) == "old"

    assert evolution_server.requests == []

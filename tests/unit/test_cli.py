import json

import url_hunter.cli as cli  # type: ignore[import]
import url_hunter.core.config as config_module  # type: ignore[import]

from tests.helpers.fakes import FakeClient, no_resolve


def test_parse_traffic_line_variants():
    event = cli.parse_traffic_line("post http://a.example.com/login 302")
    assert (event.method, event.url, event.status_code) == ("POST", "http://a.example.com/login", 302)

    bare = cli.parse_traffic_line("http://a.example.com/")
    assert bare.status_code is None

    assert cli.parse_traffic_line("GET http://a.example.com/ n/a").status_code is None
    assert cli.parse_traffic_line("   ") is None


def test_replay_exports_discoveries(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_args, **_kwargs: False)
    monkeypatch.setattr(cli, "DiscoveryEngine", _engine_factory(FakeClient()))
    traffic = tmp_path / "traffic.txt"
    traffic.write_text(
        "\n".join(
            [
                "# captured",
                "GET http://sub.example.com/login?x=1 200",
                "GET http://sub.example.com/login?x=2 200",
                "GET http://sub.example.com/logo.png 200",
                "GET http://other.org/ 200",
            ]
        ),
        encoding="utf-8",
    )
    export = tmp_path / "urls.json"

    code = cli.run_cli(["-d", "example.com", "--export", str(export), "replay", str(traffic)])

    assert code == 0
    data = json.loads(export.read_text(encoding="utf-8"))
    assert [entry["url"] for entry in data] == ["http://sub.example.com/login?x=1"]
    assert "example.com: 1 host(s)" in capsys.readouterr().out


def test_replay_requires_root_domain(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_args, **_kwargs: False)
    monkeypatch.delenv("URL_HUNTER_ROOT_DOMAINS", raising=False)
    monkeypatch.setattr(cli, "DiscoveryEngine", _engine_factory(FakeClient()))
    traffic = tmp_path / "traffic.txt"
    traffic.write_text("GET http://sub.example.com/ 200\n", encoding="utf-8")

    assert cli.run_cli(["replay", str(traffic)]) == 1


def test_scan_command_probes_urls(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_args, **_kwargs: False)
    monkeypatch.setenv("URL_HUNTER_SCAN_DELAY", "0")
    monkeypatch.setenv("URL_HUNTER_ATTACK_DELAY", "0")
    client = FakeClient({"http://sub.example.com/": 200})
    monkeypatch.setattr(cli, "DiscoveryEngine", _engine_factory(client))
    urls = tmp_path / "urls.txt"
    urls.write_text("http://sub.example.com/\n", encoding="utf-8")

    assert cli.run_cli(["scan", "-f", str(urls)]) == 0
    assert client.calls == ["http://sub.example.com/"]


def test_store_path_from_environment_receives_export(monkeypatch, tmp_path):
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_args, **_kwargs: False)
    monkeypatch.setenv("URL_HUNTER_SCAN_DELAY", "0")
    store_file = tmp_path / "store.json"
    monkeypatch.setenv("URL_HUNTER_STORE", str(store_file))
    client = FakeClient({"http://sub.example.com/": 200})
    monkeypatch.setattr(cli, "DiscoveryEngine", _engine_factory(client))

    assert cli.run_cli(["scan", "http://sub.example.com/"]) == 0

    data = json.loads(store_file.read_text(encoding="utf-8"))
    assert [entry["url"] for entry in data] == ["http://sub.example.com/"]


def _engine_factory(client):
    real = cli.DiscoveryEngine

    def build(settings, sink, store):
        return real(settings, sink, store, client, resolver=no_resolve)

    return build


def test_checkout_entry_point_uses_cli_main():
    import main as entry

    assert entry.main is cli.main

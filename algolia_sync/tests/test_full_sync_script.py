import json

from algolia_sync.core.settings import settings
from algolia_sync.scripts import full_sync as script

ARGS = [
    "--project-id", "p1",
    "--language", "en",
    "--slug", "url_slug",
    "--app-id", "A",
    "--index", "I",
]


def test_parse_args():
    args = script.parse_args(ARGS)

    assert (args.project_id, args.language, args.slug, args.app_id, args.index) == (
        "p1", "en", "url_slug", "A", "I",
    )


def test_main_requires_api_key(monkeypatch, capsys):
    monkeypatch.setattr(script, "setup_logging", lambda: None)
    monkeypatch.setattr(settings, "ALGOLIA_API_KEY", None)

    assert script.main(ARGS) == 1
    assert "ALGOLIA_API_KEY" in capsys.readouterr().out


def test_main_prints_object_ids(monkeypatch, capsys):
    monkeypatch.setattr(script, "setup_logging", lambda: None)
    monkeypatch.setattr(settings, "ALGOLIA_API_KEY", "key")
    calls = []

    async def fake_sync(args, api_key):
        calls.append((args.project_id, api_key))
        return ["id-home_en"]

    monkeypatch.setattr(script, "_sync", fake_sync)

    assert script.main(ARGS) == 0
    assert json.loads(capsys.readouterr().out.strip().splitlines()[-1]) == ["id-home_en"]
    assert calls == [("p1", "key")]


def test_main_reports_failures(monkeypatch, capsys):
    monkeypatch.setattr(script, "setup_logging", lambda: None)
    monkeypatch.setattr(settings, "ALGOLIA_API_KEY", "key")

    async def failing_sync(args, api_key):
        raise RuntimeError("boom")

    monkeypatch.setattr(script, "_sync", failing_sync)

    assert script.main(ARGS) == 1
    assert "Full sync failed: boom" in capsys.readouterr().out

"""Tests for the rule file updater and its CLI."""

from __future__ import annotations

import json

import httpx
import pytest

from clearurls.errors import RulesetError
from clearurls.scripts.update_rules import main
from clearurls.services.rules_fetch import RulesFetcher, sha256_text

RULES_URL = "https://rules.example/data.json"

GOOD = json.dumps({"providers": {"site": {"urlPattern": "site\\.com", "rules": ["ref"]}}})
OTHER = json.dumps(
    {
        "providers": {
            "site": {"urlPattern": "site\\.com"},
            "globalRules": {"urlPattern": ".*", "rules": ["utm_source"]},
        }
    }
)


def _fetcher(tmp_path, handler) -> RulesFetcher:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return RulesFetcher(RULES_URL, tmp_path / "rules.json", client=client)


def _serve(text: str, status: int = 200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == RULES_URL
        return httpx.Response(status, text=text)

    return handler


class TestRulesFetcher:
    def test_requires_url(self, tmp_path):
        with pytest.raises(ValueError, match="rules_url is required"):
            RulesFetcher("", tmp_path / "rules.json")

    def test_meta_path_defaults_next_to_rules(self, tmp_path):
        fetcher = _fetcher(tmp_path, _serve(GOOD))
        assert fetcher.meta_path == tmp_path / "rules.meta.json"

    def test_download_writes_rules_and_meta(self, tmp_path):
        fetcher = _fetcher(tmp_path, _serve(GOOD))
        result = fetcher.update()

        assert result.source == "remote"
        assert result.changed is True
        assert result.provider_count == 1
        assert result.hash == sha256_text(GOOD)
        assert (tmp_path / "rules.json").read_text() == GOOD
        meta = json.loads((tmp_path / "rules.meta.json").read_text())
        assert meta["hash"] == sha256_text(GOOD)
        assert meta["fetchedFrom"] == RULES_URL
        assert meta["updatedAt"]

    def test_same_hash_keeps_timestamp(self, tmp_path):
        fetcher = _fetcher(tmp_path, _serve(GOOD))
        fetcher.update()
        meta_path = tmp_path / "rules.meta.json"
        meta = json.loads(meta_path.read_text())
        meta["updatedAt"] = "2020-01-01T00:00:00+00:00"
        meta_path.write_text(json.dumps(meta))

        result = fetcher.update()
        assert result.changed is False
        assert json.loads(meta_path.read_text())["updatedAt"] == "2020-01-01T00:00:00+00:00"

    def test_new_document_marked_changed(self, tmp_path):
        _fetcher(tmp_path, _serve(GOOD)).update()
        result = _fetcher(tmp_path, _serve(OTHER)).update()
        assert result.changed is True
        assert result.provider_count == 2

    def test_corrupt_meta_ignored(self, tmp_path):
        (tmp_path / "rules.meta.json").write_text("{oops")
        result = _fetcher(tmp_path, _serve(GOOD)).update()
        assert result.changed is True

    def test_http_error_falls_back_to_local(self, tmp_path):
        (tmp_path / "rules.json").write_text(OTHER)
        result = _fetcher(tmp_path, _serve("", status=500)).update()
        assert result.source == "local"
        assert result.changed is False
        assert result.provider_count == 2

    def test_http_error_without_local_copy(self, tmp_path):
        with pytest.raises(RulesetError, match="Local rules file not found"):
            _fetcher(tmp_path, _serve("", status=503)).update()

    def test_invalid_download_keeps_local_copy(self, tmp_path):
        (tmp_path / "rules.json").write_text(GOOD)
        with pytest.raises(RulesetError):
            _fetcher(tmp_path, _serve("<html>not json</html>")).update()
        assert (tmp_path / "rules.json").read_text() == GOOD
        assert not (tmp_path / "rules.meta.json").exists()

    def test_local_only_skips_network(self, tmp_path):
        (tmp_path / "rules.json").write_text(GOOD)

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("network used")

        result = _fetcher(tmp_path, handler).update(local_only=True)
        assert result.source == "local"
        assert result.provider_count == 1


class TestUpdateRulesScript:
    def test_local_ok(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(GOOD)
        assert main(["--local", "--output", str(path)]) == 0

    def test_local_missing_file(self, tmp_path):
        assert main(["--local", "--output", str(tmp_path / "missing.json")]) == 1

    def test_local_invalid_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({"providers": {"x": {"rules": []}}}))
        assert main(["--local", "--output", str(path)]) == 1

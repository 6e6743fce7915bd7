"""Tests for the sitegen CLI commands."""

import json

import pytest

import sitegen.__main__ as cli
from sitegen.catalog import get_catalog
from sitegen.config import EnvVar
from sitegen.orchestrator import Orchestrator
from sitegen.schema import ImageSlot
from sitegen.testing import FakeUpstream, MockLLMBackend


@pytest.fixture
def offline_orchestrator(monkeypatch, fast_settings):
    """Route the generate command to mock upstreams."""
    upstream = FakeUpstream()

    def build(settings):
        return Orchestrator(
            fast_settings.with_overrides(
                spec_failure_policy=settings.spec_failure_policy,
                request_deadline=settings.request_deadline,
            ),
            llm_backend=MockLLMBackend(),
            http_client=upstream.client(),
        )

    monkeypatch.setattr(cli, "_build_orchestrator", build)
    return upstream


class TestGenerateCommand:
    """Tests for `generate`."""

    @pytest.mark.unit
    def test_prints_package_json(self, offline_orchestrator, capsys):
        """The package is printed with camelCase wire names."""
        assert cli.main(["generate", "Sweet Haven", "--type", "bakery"]) == 0
        output = json.loads(capsys.readouterr().out)
        spec = output["designSpec"]
        assert spec["heroTitle"] == "Sweet Haven Bakery"
        assert set(spec["generatedImages"]) == {s.value for s in ImageSlot}
        assert output["report"]["specSource"] == "llm"

    @pytest.mark.unit
    def test_writes_output_file(self, offline_orchestrator, tmp_path):
        """--output writes the JSON to a file."""
        target = tmp_path / "package.json"
        assert cli.main(["generate", "Sweet Haven", "-t", "bakery", "-o", str(target)]) == 0
        assert json.loads(target.read_text())["designSpec"]["primaryColor"] == "#FF6B35"

    @pytest.mark.unit
    def test_empty_name_fails(self, offline_orchestrator):
        """An empty business name exits with status 1."""
        assert cli.main(["generate", "  "]) == 1


class TestCatalogCommand:
    """Tests for `catalog`."""

    @pytest.mark.unit
    def test_resolves_type(self, capsys):
        """The matched keyword and four URLs are printed."""
        assert cli.main(["catalog", "Artisan Bakery"]) == 0
        out = capsys.readouterr().out
        assert "-> bakery" in out
        assert get_catalog().image_for("bakery", ImageSlot.HERO) in out

    @pytest.mark.unit
    def test_list(self, capsys):
        """--list prints every keyword."""
        assert cli.main(["catalog", "--list"]) == 0
        out = capsys.readouterr().out
        assert "real_estate (also: real estate)" in out
        assert len(out.strip().splitlines()) == len(get_catalog().keywords)


class TestPaletteCommand:
    """Tests for `palette`."""

    @pytest.mark.unit
    def test_reports_text_color(self, capsys):
        """Light backgrounds get dark text and vice versa."""
        assert cli.main(["palette", "#FFFFFF", "#000000"]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert "text=#1A1A1A" in lines[0]
        assert "text=#FFFFFF" in lines[1]

    @pytest.mark.unit
    def test_invalid_color(self):
        """Invalid colours set a failing exit status."""
        assert cli.main(["palette", "orange"]) == 1


class TestEnvCommand:
    """Tests for `env`."""

    @pytest.mark.unit
    def test_secrets_masked(self, monkeypatch, capsys):
        """Credential values are never printed."""
        monkeypatch.setenv("GEMINI_API_KEY", "super-secret")
        assert cli.main(["env", "--category", "llm"]) == 0
        out = capsys.readouterr().out
        assert "super-secret" not in out
        assert "GEMINI_API_KEY" in out

    @pytest.mark.unit
    def test_all_variables_listed(self, capsys):
        """Every variable appears without a category filter."""
        assert cli.main(["env"]) == 0
        out = capsys.readouterr().out
        assert all(var.value.name in out for var in EnvVar)

    @pytest.mark.unit
    def test_no_command_shows_help(self, capsys):
        """Running without a command prints help and fails."""
        assert cli.main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()

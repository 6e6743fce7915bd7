"""Tests for configuration management."""

import pytest

from .lib import (
    EnvConfig,
    EnvVar,
    PipelineSettings,
    get_available_image_providers,
    get_available_llm_providers,
    get_environment,
    get_environment_info,
    list_environment_variables,
    load_settings,
)

_ALL_VARS = [var.value.name for var in EnvVar]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every sitegen variable from the environment."""
    for name in _ALL_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# =============================================================================
# Tests for get_environment (main interface)
# =============================================================================


class TestGetEnvironment:
    """Tests for the unified get_environment interface."""

    @pytest.mark.unit
    def test_returns_default_when_not_set(self, clean_env):
        """Returns default value when env var is not set."""
        assert get_environment(EnvVar.MIN_IMAGE_BYTES) == 1000

    @pytest.mark.unit
    def test_override_takes_priority(self, monkeypatch):
        """Override parameter takes highest priority."""
        monkeypatch.setenv("MIN_IMAGE_BYTES", "9999")
        assert get_environment(EnvVar.MIN_IMAGE_BYTES, override=5000) == 5000

    @pytest.mark.unit
    def test_env_var_overrides_default(self, monkeypatch):
        """Environment variable overrides default value."""
        monkeypatch.setenv("SLOT_CONCURRENCY", "8")
        result = get_environment(EnvVar.SLOT_CONCURRENCY)
        assert result == 8
        assert isinstance(result, int)

    @pytest.mark.unit
    def test_float_type_conversion(self, monkeypatch):
        """Float type conversion from string."""
        monkeypatch.setenv("PROVIDER_TIMEOUT", "2.5")
        result = get_environment(EnvVar.PROVIDER_TIMEOUT)
        assert result == 2.5
        assert isinstance(result, float)

    @pytest.mark.unit
    def test_invalid_float_returns_default(self, monkeypatch):
        """Invalid float value returns default."""
        monkeypatch.setenv("REQUEST_DEADLINE", "soon")
        assert get_environment(EnvVar.REQUEST_DEADLINE) == 90.0

    @pytest.mark.unit
    def test_invalid_int_returns_default(self, monkeypatch):
        """Invalid integer value returns default."""
        monkeypatch.setenv("RETRY_MAX_RETRIES", "many")
        assert get_environment(EnvVar.RETRY_MAX_RETRIES) == 2

    @pytest.mark.unit
    def test_none_default_for_api_keys(self, clean_env):
        """API keys default to None when not set."""
        assert get_environment(EnvVar.GEMINI_API_KEY) is None
        assert get_environment(EnvVar.HUGGING_FACE_TOKEN) is None

    @pytest.mark.unit
    def test_string_type(self, monkeypatch):
        """String type returns as-is."""
        monkeypatch.setenv("UNSPLASH_ACCESS_KEY", "unsplash-key")
        assert get_environment(EnvVar.UNSPLASH_ACCESS_KEY) == "unsplash-key"


class TestGetEnvironmentInfo:
    """Tests for environment variable metadata."""

    @pytest.mark.unit
    def test_returns_env_config(self):
        """Returns EnvConfig dataclass."""
        info = get_environment_info(EnvVar.PROVIDER_TIMEOUT)
        assert isinstance(info, EnvConfig)
        assert info.name == "PROVIDER_TIMEOUT"
        assert info.default == 15.0
        assert info.var_type is float
        assert info.category == "pipeline"

    @pytest.mark.unit
    def test_description_present(self):
        """Description field is populated."""
        info = get_environment_info(EnvVar.HUGGING_FACE_TOKEN)
        assert "Hugging Face" in info.description


class TestListEnvironmentVariables:
    """Tests for listing environment variables."""

    @pytest.mark.unit
    def test_list_all(self):
        """Lists every variable when no category is given."""
        assert len(list_environment_variables()) == len(EnvVar)

    @pytest.mark.unit
    @pytest.mark.parametrize("category", ["llm", "image", "pipeline"])
    def test_filter_by_category(self, category):
        """Filters by category."""
        result = list_environment_variables(category)
        assert result
        assert all(var.value.category == category for var in result)

    @pytest.mark.unit
    def test_unknown_category_is_empty(self):
        """Unknown category returns an empty list."""
        assert list_environment_variables("nonexistent") == []


# =============================================================================
# Tests for PipelineSettings
# =============================================================================


class TestLoadSettings:
    """Tests for load_settings and PipelineSettings validation."""

    @pytest.mark.unit
    def test_defaults(self, clean_env):
        """Defaults match the documented values."""
        settings = load_settings()
        assert settings.provider_timeout == 15.0
        assert settings.request_deadline == 90.0
        assert settings.max_retries == 2
        assert settings.min_image_bytes == 1000
        assert settings.slot_concurrency == 4
        assert settings.spec_failure_policy == "abort"
        assert settings.gemini_api_key is None

    @pytest.mark.unit
    def test_reads_environment(self, clean_env):
        """Values come from the environment."""
        clean_env.setenv("GEMINI_API_KEY", "g-key")
        clean_env.setenv("REQUEST_DEADLINE", "30")
        settings = load_settings()
        assert settings.gemini_api_key == "g-key"
        assert settings.request_deadline == 30.0

    @pytest.mark.unit
    def test_overrides_win(self, clean_env):
        """Keyword overrides beat the environment."""
        clean_env.setenv("SLOT_CONCURRENCY", "2")
        settings = load_settings(slot_concurrency=6)
        assert settings.slot_concurrency == 6

    @pytest.mark.unit
    def test_unknown_override_rejected(self, clean_env):
        """Unknown field names raise TypeError."""
        with pytest.raises(TypeError, match="Unknown settings"):
            load_settings(cache_dir="/tmp")

    @pytest.mark.unit
    def test_invalid_policy_rejected(self):
        """Only abort and default are accepted policies."""
        with pytest.raises(ValueError, match="spec_failure_policy"):
            PipelineSettings(spec_failure_policy="ignore")

    @pytest.mark.unit
    def test_non_positive_deadline_rejected(self):
        """Deadline must be positive."""
        with pytest.raises(ValueError, match="request_deadline"):
            PipelineSettings(request_deadline=0)

    @pytest.mark.unit
    def test_with_overrides_skips_none(self):
        """None overrides leave fields untouched."""
        settings = PipelineSettings(max_retries=3)
        updated = settings.with_overrides(max_retries=None, slot_concurrency=1)
        assert updated.max_retries == 3
        assert updated.slot_concurrency == 1


class TestAvailableProviders:
    """Tests for provider availability helpers."""

    @pytest.mark.unit
    def test_llm_providers_follow_keys(self):
        """Only providers with keys are listed, in preference order."""
        settings = PipelineSettings(gemini_api_key="g", anthropic_api_key="a")
        assert get_available_llm_providers(settings) == ["gemini", "anthropic"]

    @pytest.mark.unit
    def test_no_llm_providers(self):
        """No keys means no providers."""
        assert get_available_llm_providers(PipelineSettings()) == []

    @pytest.mark.unit
    def test_image_providers_always_include_stock(self):
        """Keyless stock search is always available."""
        assert get_available_image_providers(PipelineSettings()) == ["unsplash"]

    @pytest.mark.unit
    def test_image_providers_with_keys(self):
        """Credentialed providers precede stock search."""
        settings = PipelineSettings(gemini_api_key="g", hugging_face_token="hf")
        assert get_available_image_providers(settings) == [
            "imagen",
            "huggingface",
            "unsplash",
        ]

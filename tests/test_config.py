"""Tests for settings, logging setup and the PRNG."""

import pytest
import structlog
from pydantic import ValidationError
from py_biomorph.config import GenerationSettings, Settings, load_generation_settings, settings
from py_biomorph.core.generator import GeneratorOptions
from py_biomorph.logging_setup import configure_logging
from py_biomorph.utils import AleaPRNG, new_seed, resolve_prng


class TestGenerationSettings:
    """Test named generation settings."""

    def test_defaults_to_options(self):
        """Test that defaults map onto the option dataclasses."""
        options = GenerationSettings().to_options()
        assert options.body.sides == 16
        assert options.spine.samples == 48
        assert options.layout.iterations == 120
        assert options.include_limbs and options.include_fins

    def test_nested_values(self):
        """Test loading a nested mapping."""
        loaded = load_generation_settings({
            "shape": {"sides": 8, "samples": 12, "twist": 1.0},
            "layout": {"iterations": 30, "area": 2.0},
            "accessories": {"include_fins": False},
        })
        options = loaded.to_options()
        assert options.body.sides == 8
        assert options.body.twist == 1.0
        assert options.spine.samples == 12
        assert options.layout.area == 2.0
        assert options.include_fins is False

    @pytest.mark.parametrize("values", [
        {"shape": {"sides": 2}},
        {"shape": {"samples": 3}},
        {"layout": {"area": 0}},
        {"complexity": {"min_scale": 3.0, "max_scale": 1.0}},
        {"weld_tolerance": 0},
    ])
    def test_invalid_values(self, values):
        """Test that out-of-range settings are rejected."""
        with pytest.raises(ValidationError):
            load_generation_settings(values)


class TestSettings:
    """Test environment-driven settings."""

    def test_env_prefix(self, monkeypatch):
        """Test that BIOMORPH_ variables override defaults."""
        monkeypatch.setenv("BIOMORPH_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("BIOMORPH_WELD_TOLERANCE", "0.001")
        current = Settings()
        assert current.log_level == "DEBUG"
        assert current.weld_tolerance == pytest.approx(0.001)

    def test_generator_options_follow_settings(self, monkeypatch):
        """Test that generator options take the weld distance from settings."""
        monkeypatch.setattr(settings, "weld_tolerance", 0.003)
        assert GeneratorOptions().weld_tolerance == pytest.approx(0.003)
        assert GeneratorOptions(weld_tolerance=0.5).weld_tolerance == 0.5

    def test_configure_logging(self):
        """Test that logging can be configured in both formats."""
        try:
            configure_logging(level="DEBUG", fmt="json")
            configure_logging(level="WARNING", fmt="console")
            structlog.get_logger().warning("Logging configured", test=True)
        finally:
            structlog.reset_defaults()


class TestAleaPRNG:
    """Test the seedable PRNG."""

    def test_reproducible(self):
        """Test that equal seeds give equal streams."""
        a, b = AleaPRNG("seed"), AleaPRNG("seed")
        assert [a.random() for _ in range(10)] == [b.random() for _ in range(10)]
        assert a.call_count == 10

    def test_different_seeds(self):
        """Test that different seeds diverge."""
        assert AleaPRNG("one").random() != AleaPRNG("two").random()

    def test_ranges(self):
        """Test output ranges."""
        prng = AleaPRNG(5)
        for _ in range(200):
            assert 0.0 <= prng.random() < 1.0
            assert 0 <= prng.randrange(7) < 7
            assert 2.0 <= prng.uniform(2.0, 3.0) < 3.0

    def test_invalid_arguments(self):
        """Test empty choice and non-positive randrange."""
        prng = AleaPRNG("x")
        with pytest.raises(IndexError):
            prng.choice([])
        with pytest.raises(ValueError):
            prng.randrange(0)

    def test_resolve(self):
        """Test seed resolution."""
        prng = AleaPRNG("keep")
        assert resolve_prng(prng) is prng
        assert resolve_prng(3).seed == 3
        assert isinstance(resolve_prng(None).seed, str)
        assert len(new_seed()) == 16

"""Tests for biome classification."""

import numpy as np
import pytest

from duneworld.config import GenerationSettings
from duneworld.terrain.biome import BiomeClassifier


def _coords(n: int = 41, extent: float = 20.0) -> tuple[np.ndarray, np.ndarray]:
    t = np.linspace(0.0, extent, n)
    return np.meshgrid(t, t)


class TestBasicBiome:
    """Tests for the single-layer biome mode."""

    def test_output_range_and_dtype(self, settings: GenerationSettings) -> None:
        """Blend is float32 in [0, 1]."""
        u, v = _coords()
        blend = BiomeClassifier(settings, seed=42).classify(u, v)
        assert blend.dtype == np.float32
        assert blend.min() >= 0.0
        assert blend.max() <= 1.0

    def test_deterministic(self, settings: GenerationSettings) -> None:
        """Same seed gives the same biome map."""
        u, v = _coords()
        a = BiomeClassifier(settings, seed=7).classify(u, v)
        b = BiomeClassifier(settings, seed=7).classify(u, v)
        np.testing.assert_array_equal(a, b)

    def test_zero_transition_is_hard_step(self) -> None:
        """Without a transition band the blend is exactly 0 or 1."""
        u, v = _coords()
        blend = BiomeClassifier(GenerationSettings(biome_transition=0.0), seed=3).classify(u, v)
        assert set(np.unique(blend)) <= {0.0, 1.0}

    def test_threshold_band(self, settings: GenerationSettings) -> None:
        """Noise below the band is salt flat, above is dune, center is half."""
        classifier = BiomeClassifier(settings, seed=0)
        low = settings.biome_threshold - settings.biome_transition
        high = settings.biome_threshold + settings.biome_transition
        result = classifier.blend_from_noise(np.array([low - 0.01, settings.biome_threshold, high + 0.01]))
        np.testing.assert_allclose(result, [0.0, 0.5, 1.0])

    @pytest.mark.parametrize("transition", [0.01, 0.05, 0.12, 0.3])
    def test_continuity_bound(self, transition: float) -> None:
        """Blend changes at most 1.5 / (2 * transition) times the noise change."""
        classifier = BiomeClassifier(GenerationSettings(biome_transition=transition), seed=0)
        n = np.linspace(0.0, 1.0, 20001)
        blend = classifier.blend_from_noise(n)
        bound = 1.5 / (2.0 * transition) * np.abs(np.diff(n))
        assert np.all(np.abs(np.diff(blend)) <= bound + 1e-12)

    def test_separate_seed_ignores_world_seed(self) -> None:
        """With a separate biome seed, the world seed has no effect."""
        u, v = _coords()
        s = GenerationSettings(biome_separate_seed=True, biome_seed=1234)
        a = BiomeClassifier(s, seed=1).classify(u, v)
        b = BiomeClassifier(s, seed=2).classify(u, v)
        np.testing.assert_array_equal(a, b)

    def test_advanced_controls_ignored_in_basic_mode(self) -> None:
        """Basic mode does not apply invert or contrast."""
        u, v = _coords()
        plain = BiomeClassifier(GenerationSettings(), seed=4).noise(u, v)
        tweaked = BiomeClassifier(
            GenerationSettings(biome_invert=True, biome_contrast=3.0), seed=4
        ).noise(u, v)
        np.testing.assert_array_equal(plain, tweaked)


class TestAdvancedBiome:
    """Tests for the advanced biome pipeline."""

    def _settings(self, **overrides) -> GenerationSettings:
        return GenerationSettings(biome_mode="advanced", **overrides)

    def test_output_range(self) -> None:
        """Every advanced control keeps the blend in [0, 1]."""
        u, v = _coords()
        s = self._settings(
            biome_octaves=4,
            biome_ridged=True,
            biome_rotation=30.0,
            biome_warp_strength=0.5,
            biome_contrast=2.5,
        )
        blend = BiomeClassifier(s, seed=9).classify(u, v)
        assert blend.min() >= 0.0
        assert blend.max() <= 1.0

    def test_single_octave_matches_basic(self) -> None:
        """With neutral controls the advanced noise equals the basic noise."""
        u, v = _coords()
        basic = BiomeClassifier(GenerationSettings(), seed=6).noise(u, v)
        advanced = BiomeClassifier(self._settings(), seed=6).noise(u, v)
        np.testing.assert_allclose(advanced, basic, atol=1e-12)

    def test_invert_flips_noise(self) -> None:
        """Invert maps n to 1 - n."""
        u, v = _coords()
        plain = BiomeClassifier(self._settings(), seed=6).noise(u, v)
        inverted = BiomeClassifier(self._settings(biome_invert=True), seed=6).noise(u, v)
        np.testing.assert_allclose(inverted, 1.0 - plain, atol=1e-12)

    def test_contrast_spreads_values(self) -> None:
        """Higher contrast pushes values away from 0.5."""
        u, v = _coords()
        plain = BiomeClassifier(self._settings(), seed=6).noise(u, v)
        strong = BiomeClassifier(self._settings(biome_contrast=2.0), seed=6).noise(u, v)
        assert np.abs(strong - 0.5).mean() > np.abs(plain - 0.5).mean()

    def test_warp_changes_map(self) -> None:
        """Domain warp distorts the biome layout."""
        u, v = _coords()
        plain = BiomeClassifier(self._settings(), seed=6).noise(u, v)
        warped = BiomeClassifier(self._settings(biome_warp_strength=1.0), seed=6).noise(u, v)
        assert not np.allclose(plain, warped)

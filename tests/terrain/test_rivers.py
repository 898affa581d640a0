"""Tests for the global river network."""

import numpy as np
import pytest

from duneworld.config import GenerationSettings
from duneworld.terrain import seeding
from duneworld.terrain.rivers import (
    FalloffKernel,
    RiverAxis,
    RiverNetworkBuilder,
    RiverPath,
)


def _straight_settings(**overrides) -> GenerationSettings:
    """Settings that produce perfectly straight rivers of constant width."""
    params = dict(
        river_low_amplitude=0.0,
        river_high_amplitude=0.0,
        river_roughness=0.0,
        river_width_jitter=0.0,
    )
    params.update(overrides)
    return GenerationSettings(**params)


def _straight_river(n: int, offset: float, width: float, axis: RiverAxis) -> RiverPath:
    return RiverPath(
        index=0,
        axis=axis,
        start_offset=int(offset),
        path=np.full(n, offset, dtype=np.float64),
        widths=np.full(n, width, dtype=np.float64),
    )


class TestFalloffKernel:
    """Tests for cached falloff kernels."""

    def test_kernel_covers_square(self) -> None:
        """A radius-r kernel holds every offset in [-r, r]^2."""
        kernel = FalloffKernel.build(2)
        assert len(kernel.distances) == 25
        assert kernel.distances.max() == pytest.approx(np.sqrt(8.0))
        assert kernel.distances.min() == 0.0

    def test_kernel_cached_by_radius(self, settings: GenerationSettings) -> None:
        """The builder reuses one kernel per integer radius."""
        builder = RiverNetworkBuilder(settings, seed=1, samples_x=17, samples_y=17)
        assert builder.kernel(3) is builder.kernel(3)
        assert builder.kernel(3) is not builder.kernel(4)


class TestRiverPlanning:
    """Tests for river count and path planning."""

    def test_river_count_in_range(self) -> None:
        """River count is drawn from [min_rivers, max_rivers]."""
        s = GenerationSettings(min_rivers=2, max_rivers=4)
        for seed in range(20):
            count = RiverNetworkBuilder(s, seed, 33, 33).river_count()
            assert 2 <= count <= 4

    def test_fixed_count(self) -> None:
        """Equal bounds give exactly that many rivers."""
        s = GenerationSettings(min_rivers=3, max_rivers=3)
        assert len(RiverNetworkBuilder(s, 5, 33, 33).plan_rivers()) == 3

    def test_no_rivers(self) -> None:
        """Zero rivers leaves the mask empty."""
        s = GenerationSettings(min_rivers=0, max_rivers=0)
        mask, rivers = RiverNetworkBuilder(s, 5, 33, 33).build()
        assert rivers == []
        assert not mask.any()

    def test_plan_deterministic(self, settings: GenerationSettings) -> None:
        """Same seed plans identical rivers."""
        a = RiverNetworkBuilder(settings, 11, 65, 49).plan_rivers()
        b = RiverNetworkBuilder(settings, 11, 65, 49).plan_rivers()
        assert len(a) == len(b)
        for ra, rb in zip(a, b):
            assert ra.axis == rb.axis
            assert ra.start_offset == rb.start_offset
            np.testing.assert_array_equal(ra.path, rb.path)
            np.testing.assert_array_equal(ra.widths, rb.widths)

    def test_paths_within_grid(self) -> None:
        """Paths span the primary axis and stay inside the perpendicular one."""
        s = GenerationSettings(min_rivers=5, max_rivers=5, river_low_amplitude=2.0)
        builder = RiverNetworkBuilder(s, 3, 65, 49)
        for river in builder.plan_rivers():
            if river.axis is RiverAxis.HORIZONTAL:
                n_primary, n_perp = 65, 49
            else:
                n_primary, n_perp = 49, 65
            assert river.length == n_primary
            assert river.path.min() >= 0.0
            assert river.path.max() <= n_perp - 1
            assert n_perp // 4 <= river.start_offset < 3 * n_perp // 4

    def test_straight_path_stays_at_start(self) -> None:
        """Without drift, wiggle or roughness the path is the start offset."""
        builder = RiverNetworkBuilder(_straight_settings(), 8, 41, 41)
        for river in builder.plan_rivers():
            np.testing.assert_allclose(river.path, river.start_offset, atol=1e-9)

    def test_width_jitter_bounds(self) -> None:
        """Widths stay within river_width * (1 +/- jitter)."""
        s = GenerationSettings(river_width=4.0, river_width_jitter=0.25)
        builder = RiverNetworkBuilder(s, 2, 129, 129)
        widths = builder.build_widths(129, width_seed=99)
        assert widths.min() >= 4.0 * 0.75 - 1e-9
        assert widths.max() <= 4.0 * 1.25 + 1e-9

    def test_sub_seeds_distinct(self) -> None:
        """River layout, path and width seeds never repeat or equal the world seed."""
        strides = [
            0,
            seeding.HORIZONTAL_PATH_STRIDE,
            seeding.VERTICAL_PATH_STRIDE,
            seeding.HORIZONTAL_WIDTH_STRIDE,
            seeding.VERTICAL_WIDTH_STRIDE,
        ]
        seeds = [seeding.river_seed(42, r, stride) for r in range(6) for stride in strides]
        assert len(set(seeds)) == len(seeds)
        assert 42 not in seeds
        assert seeding.derive_seed(42, seeding.RIVER_COUNT_SEED_OFFSET) not in seeds

    def test_width_jitter_independent_of_drift(self) -> None:
        """Width variation does not follow the path's drift curve."""
        s = GenerationSettings(
            river_low_frequency=0.8,
            river_width_jitter_frequency=0.8,
            river_high_amplitude=0.0,
            river_roughness=0.0,
            river_smooth_passes=0,
            river_width=4.0,
        )
        builder = RiverNetworkBuilder(s, 42, 129, 129)
        for index in range(3):
            river = builder.plan_river(index)
            drift = river.path / 128.0 - river.start_offset / 128.0
            jitter = river.widths / 4.0 - 1.0
            assert abs(np.corrcoef(drift, jitter)[0, 1]) < 0.999

    def test_smoothing_reduces_wiggle(self) -> None:
        """Smoothing passes reduce sample-to-sample path changes."""
        rough = GenerationSettings(river_smooth_passes=0, river_high_frequency=40.0)
        smooth = GenerationSettings(river_smooth_passes=8, river_high_frequency=40.0)
        raw = RiverNetworkBuilder(rough, 1, 129, 129).build_path(129, 129, 64, path_seed=77)
        smoothed = RiverNetworkBuilder(smooth, 1, 129, 129).build_path(129, 129, 64, path_seed=77)
        assert np.abs(np.diff(smoothed, n=2)).sum() < np.abs(np.diff(raw, n=2)).sum()

    def test_rejects_tiny_grid(self, settings: GenerationSettings) -> None:
        """A grid needs two samples per axis."""
        with pytest.raises(ValueError):
            RiverNetworkBuilder(settings, 1, 1, 10)


class TestRiverStamping:
    """Tests for falloff stamping into the global mask."""

    def test_falloff_profile(self) -> None:
        """Across a straight river the mask is (1 - d/w)^softness."""
        width, softness = 4.0, 2.0
        builder = RiverNetworkBuilder(
            _straight_settings(river_bank_softness=softness), 1, 40, 30
        )
        mask = builder.empty_mask()
        builder.stamp_river(mask, _straight_river(40, 15.0, width, RiverAxis.HORIZONTAL))

        for k in range(-5, 6):
            expected = (1.0 - abs(k) / width) ** softness if abs(k) <= width else 0.0
            np.testing.assert_allclose(mask[15 + k, 20], expected, rtol=1e-6, atol=1e-7)

    def test_vertical_river_orientation(self, settings: GenerationSettings) -> None:
        """A vertical river runs down a column."""
        builder = RiverNetworkBuilder(settings, 1, 30, 40)
        mask = builder.empty_mask()
        builder.stamp_river(mask, _straight_river(40, 12.0, 2.0, RiverAxis.VERTICAL))
        np.testing.assert_array_equal(mask[:, 12], np.ones(40, dtype=np.float32))
        assert not mask[:, 20].any()

    def test_centerline_is_full_strength(self) -> None:
        """Every sample on a planned centerline has mask value 1."""
        s = GenerationSettings(min_rivers=3, max_rivers=3, river_width=3.0)
        builder = RiverNetworkBuilder(s, 21, 57, 45)
        mask, rivers = builder.build()
        for river in rivers:
            rows, cols = river.centerline_indices()
            np.testing.assert_array_equal(mask[rows, cols], 1.0)

    def test_mask_range(self, settings: GenerationSettings) -> None:
        """Mask values lie in [0, 1]."""
        mask, _ = RiverNetworkBuilder(settings, 4, 65, 65).build()
        assert mask.dtype == np.float32
        assert mask.min() >= 0.0
        assert mask.max() <= 1.0

    def test_stamping_is_max_combine(self, settings: GenerationSettings) -> None:
        """Stamping never lowers existing values and is idempotent."""
        builder = RiverNetworkBuilder(settings, 1, 40, 40)
        mask = np.full(builder.shape, 0.3, dtype=np.float32)
        river = _straight_river(40, 20.0, 6.0, RiverAxis.HORIZONTAL)

        builder.stamp_river(mask, river)
        assert mask.min() >= 0.3 - 1e-7
        once = mask.copy()
        builder.stamp_river(mask, river)
        np.testing.assert_array_equal(mask, once)

    def test_out_of_grid_offsets_dropped(self, settings: GenerationSettings) -> None:
        """Kernels hanging off the edge do not wrap around."""
        builder = RiverNetworkBuilder(settings, 1, 30, 30)
        mask = builder.empty_mask()
        builder.stamp_river(mask, _straight_river(30, 0.0, 3.0, RiverAxis.HORIZONTAL))
        assert mask[0, 10] == 1.0
        assert not mask[-5:, :].any()

    def test_build_deterministic(self, settings: GenerationSettings) -> None:
        """Same seed gives a bit-identical mask."""
        a, _ = RiverNetworkBuilder(settings, 13, 49, 49).build()
        b, _ = RiverNetworkBuilder(settings, 13, 49, 49).build()
        np.testing.assert_array_equal(a, b)

    def test_incremental_matches_build(self, settings: GenerationSettings) -> None:
        """Stamping planned rivers one by one equals build()."""
        builder = RiverNetworkBuilder(settings, 13, 49, 49)
        mask = builder.empty_mask()
        for river in builder.plan_rivers():
            builder.stamp_river(mask, river)
        built, _ = RiverNetworkBuilder(settings, 13, 49, 49).build()
        np.testing.assert_array_equal(mask, built)

"""
Tests for the coloring methods and the shared channel post-processing.
"""

import colorsys

import numpy as np
import pytest

from escapetime.core.fractal_types import ConfigurationError, FractalConfig
from escapetime.core.precision import ComplexValue
from escapetime.rendering.coloring import (
    COLORING_METHODS,
    UINT64_MAX,
    ColorConfig,
    ColoringEngine,
    clamp_channel,
    round_half_away,
    saturating_uint,
)

INF = float('inf')
NAN = float('nan')

EXTREME_VALUES = [
    ComplexValue(0, 0),
    ComplexValue(0.5, 0.25),
    ComplexValue(-3, 2),
    ComplexValue(1e300, -1e300),
    ComplexValue(1e-300, 1e-300),
    ComplexValue(INF, 0),
    ComplexValue(-INF, INF),
    ComplexValue(NAN, NAN),
    ComplexValue(0, NAN),
]


def make_engine(**color_options) -> ColoringEngine:
    return ColoringEngine(ColorConfig(**color_options), FractalConfig())


def colorize(method, z=ComplexValue(0, 0), n=0, **color_options):
    engine = make_engine(method=method, **color_options)
    return engine.colorize(z, ComplexValue(0, 0), n)


class TestColorConfig:
    def test_defaults(self):
        config = ColorConfig()
        assert config.method == 0
        assert config.multiplier == 1
        assert config.c_log == 0

    @pytest.mark.parametrize("method", [-1, 18, 99])
    def test_unknown_method(self, method):
        with pytest.raises(ConfigurationError):
            ColorConfig(method=method)

    def test_method_must_be_integer(self):
        with pytest.raises(ConfigurationError):
            ColorConfig(method=True)
        with pytest.raises(ConfigurationError):
            ColorConfig(method='3')

    def test_negative_log_count(self):
        with pytest.raises(ConfigurationError):
            ColorConfig(c_log=-1)

    @pytest.mark.parametrize("c_log", [1.0, 1.5, True, '2'])
    def test_log_count_must_be_integer(self, c_log):
        with pytest.raises(ConfigurationError, match="c_log must be an integer"):
            ColorConfig(c_log=c_log)

    def test_numpy_integers_accepted(self):
        config = ColorConfig(method=np.int64(3), c_log=np.int32(1))
        assert config.c_log == 1

    def test_dict_round_trip(self):
        config = ColorConfig(method=9, smooth=True, multiplier=2.5, c_log=2)
        assert ColorConfig.from_dict(config.to_dict()) == config


class TestHelpers:
    def test_round_half_away(self):
        assert round_half_away(2.5) == 3
        assert round_half_away(-2.5) == -3
        assert round_half_away(2.4) == 2
        assert round_half_away(0.5) == 1

    def test_clamp_channel(self):
        assert clamp_channel(NAN) == 0
        assert clamp_channel(INF) == 255
        assert clamp_channel(-INF) == 0
        assert clamp_channel(-5) == 0
        assert clamp_channel(254.5) == 255
        assert clamp_channel(127.4) == 127

    def test_saturating_uint(self):
        assert saturating_uint(INF) == UINT64_MAX
        assert saturating_uint(NAN) == 0
        assert saturating_uint(-3) == 0
        assert saturating_uint(42.0) == 42


class TestChannelRange:
    @pytest.mark.parametrize("method", sorted(COLORING_METHODS))
    @pytest.mark.parametrize("options", [
        {},
        {'smooth': True},
        {'multiplier': 1000},
        {'c_log': 2},
        {'disable_fancy': True, 'smooth': True},
    ])
    def test_channels_are_bytes(self, method, options):
        engine = make_engine(method=method, **options)
        for z in EXTREME_VALUES:
            for n in (0, 1, 7, 300, 100000):
                color = engine.colorize(z, z, n)
                assert len(color) == 3
                for channel in color:
                    assert isinstance(channel, int)
                    assert 0 <= channel <= 255, (method, options, z, n, color)


class TestMethods:
    def test_gold_escape_time(self):
        assert colorize(0, n=10) == (20, 10, 5)
        assert colorize(0, n=200) == (255, 200, 100)

    def test_gold_smooth_is_continuous(self):
        engine = make_engine(method=0, smooth=True)
        z = ComplexValue(2.5, 0)
        offset = engine.smooth_offset(z)
        assert -1 < offset < 1
        expected = 10 + offset
        assert engine.colorize(z, z, 10)[1] == clamp_channel(round_half_away(expected))

    def test_green_overflow_into_blue(self):
        assert colorize(1, n=300, disable_fancy=True) == (0, 255, 90)
        assert colorize(1, n=100, disable_fancy=True) == (0, 100, 0)

    def test_green_fancy_components(self):
        assert colorize(1, z=ComplexValue(3, 2), n=50) == (9, 50, 4)

    def test_laser_with_zero_imaginary(self):
        assert colorize(2, z=ComplexValue(2, 0)) == (0, 4, 255)

    def test_glow_pink_saturates_on_axis(self):
        assert colorize(6, z=ComplexValue(0, 1)) == (255, 255, 255)

    def test_glow_green(self):
        # 1 / 0.25, 1.5 / 0.25, 0.75 / 0.25
        assert colorize(5, z=ComplexValue(0.5, 0)) == (4, 6, 3)

    def test_xor_stripes_at_origin(self):
        assert colorize(9, z=ComplexValue(0, 0)) == (0, 255, 255)

    def test_ugly_pink(self):
        assert colorize(10, n=3) == (5, 3, 2)

    def test_binary_is_white(self):
        for z in EXTREME_VALUES:
            assert colorize(12, z=z, n=17) == (255, 255, 255)

    def test_purple_escape_time(self):
        assert colorize(13, n=1) == (9, 3, 6)

    def test_random_reseeds_with_iteration_count(self):
        engine = make_engine(method=14)
        first = engine.colorize(ComplexValue(0, 0), ComplexValue(0, 0), 42)
        second = engine.colorize(ComplexValue(5, 5), ComplexValue(1, 1), 42)
        assert first == second
        expected = tuple(int(v) for v in np.random.default_rng(42).integers(0, 256, size=3))
        assert first == expected

    def test_hue_escape_time(self):
        assert colorize(15, n=0) == (255, 0, 0)
        expected = tuple(int(v * 255) for v in colorsys.hsv_to_rgb(100 / 256, 1, 1))
        assert colorize(15, n=100) == expected
        assert colorize(15, n=356) == expected

    def test_orange_escape_time(self):
        assert colorize(16, z=ComplexValue(1, 1), n=20) == (40, 20, 1)

    def test_sine(self):
        assert colorize(17, z=ComplexValue(0, 0)) == (0, 254, 0)


class TestPostProcessing:
    def test_multiplier(self):
        assert colorize(0, n=10, multiplier=2) == (40, 20, 10)

    def test_logarithms(self):
        # ln 5, ln 1, ln 2
        assert colorize(13, n=0, c_log=1) == (2, 0, 1)

    def test_log_of_zero_clamps(self):
        assert colorize(0, n=0, c_log=1) == (0, 0, 0)

    def test_xor_stripes_scales_with_multiplier(self):
        plain = colorize(9, z=ComplexValue(0, 0), n=10)
        doubled = colorize(9, z=ComplexValue(0, 0), n=10, multiplier=2)
        assert plain != doubled

    def test_unknown_method_lookup(self):
        engine = make_engine()
        with pytest.raises(ConfigurationError):
            engine.get_algorithm(18)

    def test_list_methods(self):
        methods = make_engine().list_methods()
        assert [method_id for method_id, _ in methods] == list(range(18))

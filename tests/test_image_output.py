"""
Tests for PNG export and output file naming.
"""

from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from escapetime.api import RenderConfig, RenderStatistics
from escapetime.core.fractal_types import FractalConfig
from escapetime.rendering.coloring import ColorConfig
from escapetime.rendering.image_output import ImageExporter, RenderMetadata, build_filename


class TestBuildFilename:
    def test_defaults(self):
        stats = RenderStatistics(bounded=3, max_escape_iteration=37, max_period_iteration=5)
        path = build_filename(FractalConfig(), ColorConfig(), RenderConfig(), stats)
        assert path == Path('mandelbrot/0/e2_el4_mi37_mpi5_1024x_ld.png')

    def test_complete_when_nothing_bounded(self):
        stats = RenderStatistics(escaped=10, max_escape_iteration=12)
        path = build_filename(FractalConfig(), ColorConfig(), RenderConfig(width=64, height=64), stats)
        assert path.name == 'e2_el4_mi12_mpi0_64x_complete_ld.png'

    def test_every_option(self):
        fractal = FractalConfig('julia', single=True, lbound=-1, rbound=1, bbound=-1, ubound=1)
        color = ColorConfig(method=1, smooth=True, disable_fancy=True, multiplier=2.5, c_log=1)
        render = RenderConfig(width=800, height=600, max_iterations=100)
        path = build_filename(fractal, color, render, RenderStatistics(), cancelled=True)
        assert path == Path('julia/1/single_e2_lb-1_rb1_bb-1_ub1_jx-0.8_jy0.156_df_mi100_mpi0'
                            '_smooth_800x600_cm2.5_clog1_partial_ld.png')

    def test_exponent_and_escape_limit(self):
        fractal = FractalConfig('burning_ship', exponent=3.5, escape_limit=16)
        path = build_filename(fractal, ColorConfig(method=4), RenderConfig(width=10, height=10),
                              RenderStatistics(bounded=1, max_escape_iteration=3))
        assert path == Path('burning_ship/4/e3.5_el16_mi3_mpi0_10x_ld.png')

    def test_smooth_only_for_escape_time_methods(self):
        stats = RenderStatistics(bounded=1)
        path = build_filename(FractalConfig(), ColorConfig(method=5, smooth=True),
                              RenderConfig(width=10, height=10), stats)
        assert 'smooth' not in path.name
        path = build_filename(FractalConfig(), ColorConfig(method=0, disable_fancy=True),
                              RenderConfig(width=10, height=10), stats)
        assert '_df' not in path.name

    def test_single_mode_is_never_complete(self):
        path = build_filename(FractalConfig(single=True), ColorConfig(),
                              RenderConfig(width=10, height=10, max_iterations=7), RenderStatistics())
        assert path.name == 'single_e2_mi7_mpi0_10x_ld.png'


class TestImageExporter:
    def test_save_and_reload(self, tmp_path):
        image = np.zeros((3, 5, 3), dtype=np.uint8)
        image[1, 2] = (255, 128, 7)
        target = tmp_path / 'nested' / 'dir' / 'out.png'

        ImageExporter().save_image(image, target)

        assert target.exists()
        with Image.open(target) as reloaded:
            assert reloaded.size == (5, 3)
            assert reloaded.mode == 'RGB'
            assert np.array_equal(np.asarray(reloaded), image)

    def test_metadata_round_trip(self, tmp_path):
        metadata = RenderMetadata(
            fractal_type='tricorn',
            coloring_method=8,
            resolution=(5, 3),
            max_iterations=64,
            render_time_seconds=0.5,
            partial=True,
            fractal_parameters=FractalConfig('tricorn').to_dict(),
            statistics=RenderStatistics(escaped=15).to_dict(),
        )
        target = tmp_path / 'meta.png'
        exporter = ImageExporter()
        exporter.save_image(np.zeros((3, 5, 3), dtype=np.uint8), target, metadata)

        loaded = exporter.extract_metadata_from_image(target)
        assert loaded == metadata

    def test_no_metadata(self, tmp_path):
        target = tmp_path / 'plain.png'
        exporter = ImageExporter()
        exporter.save_image(np.zeros((2, 2, 3), dtype=np.uint8), target)
        assert exporter.extract_metadata_from_image(target) is None

    def test_float_arrays_are_clipped(self, tmp_path):
        target = tmp_path / 'float.png'
        ImageExporter().save_image(np.full((2, 2, 3), 300.0), target)
        with Image.open(target) as reloaded:
            assert (np.asarray(reloaded) == 255).all()

    def test_png_only(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported format"):
            ImageExporter().save_image(np.zeros((2, 2, 3), dtype=np.uint8), tmp_path / 'out.jpg')

    def test_rejects_non_rgb(self, tmp_path):
        with pytest.raises(ValueError):
            ImageExporter().save_image(np.zeros((2, 2), dtype=np.uint8), tmp_path / 'out.png')

"""Tests for runtime configuration and host parallelism."""

import threading

import pytest
from pydantic import ValidationError

from imageflow import ProcessingConfig, get_config, set_config
from imageflow.filters.parallel import for_each_row_band, split_rows


class TestProcessingConfig:
    """Tests for ProcessingConfig."""

    def test_defaults(self):
        config = ProcessingConfig()
        assert config.num_workers is None
        assert config.rows_per_task == 64
        assert config.accelerator_enabled is True
        assert config.power_preference == 'high-performance'
        assert config.workgroup_size == 8
        assert config.worker_count >= 1

    def test_from_env(self):
        config = ProcessingConfig.from_env({
            'IMAGEFLOW_NUM_WORKERS': '3',
            'IMAGEFLOW_ROWS_PER_TASK': '16',
            'IMAGEFLOW_ACCELERATOR': 'off',
            'IMAGEFLOW_POWER_PREFERENCE': 'low-power',
            'IMAGEFLOW_LOG_LEVEL': 'debug',
        })
        assert config.worker_count == 3
        assert config.rows_per_task == 16
        assert config.accelerator_enabled is False
        assert config.power_preference == 'low-power'
        assert config.log_level == 'DEBUG'

    @pytest.mark.parametrize("value", ['1', 'true', 'YES', 'on'])
    def test_accelerator_truthy(self, value):
        assert ProcessingConfig.from_env({'IMAGEFLOW_ACCELERATOR': value}).accelerator_enabled

    def test_empty_env(self):
        assert ProcessingConfig.from_env({}) == ProcessingConfig()

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            ProcessingConfig(num_workers=0)
        with pytest.raises(ValidationError):
            ProcessingConfig(power_preference='fast')

    def test_frozen(self):
        with pytest.raises(ValidationError):
            ProcessingConfig().rows_per_task = 1

    def test_active_config(self):
        config = ProcessingConfig(num_workers=2)
        set_config(config)
        assert get_config() is config
        set_config(None)
        assert get_config() is not config


class TestRowBands:
    """Tests for the row band fan-out."""

    def test_split_covers_all_rows(self):
        bands = split_rows(100, 4, 10)
        assert bands == [(0, 25), (25, 50), (50, 75), (75, 100)]

    def test_split_respects_min_rows(self):
        assert split_rows(100, 8, 64) == [(0, 64), (64, 100)]

    def test_split_small_image(self):
        assert split_rows(3, 16, 1) == [(0, 1), (1, 2), (2, 3)]

    def test_every_row_processed_once(self):
        seen = []
        lock = threading.Lock()

        def work(start, stop):
            with lock:
                seen.extend(range(start, stop))

        for_each_row_band(50, work, ProcessingConfig(num_workers=4, rows_per_task=5))
        assert sorted(seen) == list(range(50))

    def test_band_error_propagates(self):
        def work(start, stop):
            if start > 0:
                raise RuntimeError("band failed")

        with pytest.raises(RuntimeError):
            for_each_row_band(40, work, ProcessingConfig(num_workers=4, rows_per_task=10))

    def test_filters_agree_across_worker_counts(self, noise_image):
        from imageflow.filters import BoxBlur, Sepia

        set_config(ProcessingConfig(num_workers=1, rows_per_task=64))
        single = (BoxBlur(radius=2)(noise_image), Sepia()(noise_image))
        set_config(ProcessingConfig(num_workers=4, rows_per_task=1))
        multi = (BoxBlur(radius=2)(noise_image), Sepia()(noise_image))
        assert single == multi

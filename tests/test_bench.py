from __future__ import annotations

import pytest

from universe import STORAGE_KINDS, SeedPolicy, Universe
from universe_bench import (
    COMPONENTS,
    StorageMismatchError,
    compare_storage,
    format_report,
)


def test_every_layout_is_timed_each_generation():
    timings = compare_storage(16, 12, generations=6, rng_seed=4)
    assert set(timings) == set(STORAGE_KINDS)
    for t in timings.values():
        for name in COMPONENTS:
            assert len(t.samples[name]) == 6
            assert t.mean_ms(name) >= 0
            assert t.p95_ms(name) >= 0


def test_raw_export_sizes_match_layouts():
    timings = compare_storage(16, 12, generations=1, seed=SeedPolicy.STRIPED)
    assert timings["byte"].raw_bytes == 16 * 12
    assert timings["bit"].raw_bytes == (16 * 12 + 7) // 8


def test_zero_generations_reports_zero():
    timings = compare_storage(8, 8, generations=0, rng_seed=1)
    assert timings["byte"].mean_ms("tick") == 0.0
    assert timings["bit"].p95_ms("export") == 0.0


def test_diverging_layouts_raise(monkeypatch):
    real_tick = Universe.tick

    def bit_skips_a_generation(self):
        if self.storage_kind == "bit" and self.generation == 2:
            self.generation += 1
            return
        real_tick(self)

    monkeypatch.setattr(Universe, "tick", bit_skips_a_generation)
    with pytest.raises(StorageMismatchError) as excinfo:
        compare_storage(10, 10, generations=5, seed=SeedPolicy.STRIPED)
    assert excinfo.value.generation == 3


def test_report_lists_each_layout():
    timings = compare_storage(24, 8, generations=3, rng_seed=9)
    report = format_report(timings, 24, 8, 3)
    assert "Universe: 24x8  Generations: 3" in report
    assert "\nbit " in report
    assert "\nbyte " in report
    assert "bit export is 8.0x smaller" in report

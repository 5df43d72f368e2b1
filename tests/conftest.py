from __future__ import annotations

from typing import Iterable

import numpy as np
import pytest

from universe import STORAGE_KINDS, Universe


@pytest.fixture(params=sorted(STORAGE_KINDS))
def storage(request: pytest.FixtureRequest) -> str:
    return request.param


@pytest.fixture
def make_universe(storage: str):
    def _make(width: int, height: int, alive: Iterable[tuple[int, int]] = ()) -> Universe:
        u = Universe(width, height, storage=storage)
        u.set_cells(alive)
        return u
    return _make


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)

from datetime import date

import pytest

from tests.fakes import build_harness, make_snapshot


@pytest.fixture
def today():
    return date(2024, 10, 1)


@pytest.fixture
def snapshot():
    return make_snapshot()


@pytest.fixture
def harness_factory(today):
    def _build(**kwargs):
        kwargs.setdefault("today", today)
        return build_harness(**kwargs)

    return _build

"""
Shared fixtures for the pass packaging tests.

Key generation is the slow part, so the signing material is built once per
session. Everything else is cheap and rebuilt per test.
"""

import sys
from pathlib import Path

import pytest

# tests/ must be importable so fixtures.common resolves; the project root is
# on the path for runs without an editable install.
_HERE = Path(__file__).resolve().parent
for _path in (_HERE.parent, _HERE):
    if str(_path) not in sys.path:
        sys.path.insert(0, str(_path))

from fixtures.common import (  # noqa: E402
    make_assets,
    make_cms_signer,
    make_packager,
    make_raw_signer,
    make_signing_material,
)


@pytest.fixture(scope="session")
def signing_material():
    return make_signing_material()


@pytest.fixture
def raw_signer(signing_material):
    return make_raw_signer(signing_material)


@pytest.fixture
def cms_signer(signing_material):
    return make_cms_signer(signing_material)


@pytest.fixture
def assets():
    """InMemoryAssetSource holding a small logo.png."""
    return make_assets()


@pytest.fixture
def packager(raw_signer, assets):
    return make_packager(raw_signer, assets=assets)


@pytest.fixture
def cms_packager(cms_signer, assets):
    return make_packager(cms_signer, assets=assets)


def _only_check(result, check_id: str):
    found = [c for c in result.checks if c.check_id == check_id]
    assert len(found) == 1, f"no single {check_id!r} check among {[c.check_id for c in result.checks]}"
    return found[0]


@pytest.fixture
def assert_check_passed():
    def _assert(result, check_id: str):
        check = _only_check(result, check_id)
        assert check.ok, f"{check_id} failed: {check.message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    def _assert(result, check_id: str):
        assert not _only_check(result, check_id).ok, f"{check_id} unexpectedly passed"
    return _assert

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from portal.tests.integration.helpers import make_client

if TYPE_CHECKING:
    from collections.abc import Iterator

    from starlette.testclient import TestClient


@pytest.fixture
def client(tmp_path, clock) -> Iterator[TestClient]:
    with make_client(tmp_path, clock) as test_client:
        yield test_client

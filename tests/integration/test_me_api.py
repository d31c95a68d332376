"""Integration tests for GET /api/v1/me."""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.integration

URL = "/api/v1/me"


def test_me_lists_memberships(brand_client, brand_user, brand):
    response = brand_client.get(URL)

    assert response.status_code == 200
    data = response.json()
    assert data["username"] == brand_user.username
    assert [m["company"]["id"] for m in data["companies"]] == [str(brand.id)]
    assert data["companies"][0]["role"] == "OWNER"


def test_me_requires_authentication(api_client):
    assert api_client.get(URL).status_code == 401

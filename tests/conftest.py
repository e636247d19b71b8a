"""Shared test setup: run against locally signed tokens, never a live Supabase."""

import os

os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = ""
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from bluemoon.models.activity_log import Actor
from bluemoon.utils.local_tokens import create_local_token

ADMIN = Actor(
    id="9b2f5c7e-1d4a-4b8e-9f3a-2c6d8e0a1b57",
    email="admin1@bluemoon.vn",
    username="admin1",
    role="admin",
)
MANAGER = Actor(id="5", email="manager@bluemoon.vn", username="manager", role="manager")
RESIDENT = Actor(id="42", email="resident.a101@bluemoon.vn", role="user")


def bearer(actor: Actor) -> dict:
    return {"Authorization": f"Bearer {create_local_token(actor)}"}


@pytest.fixture
def admin_headers():
    return bearer(ADMIN)


@pytest.fixture
def manager_headers():
    return bearer(MANAGER)


@pytest.fixture
def resident_headers():
    return bearer(RESIDENT)

"""
Pytest configuration and shared fixtures
"""
import os
import sys
from pathlib import Path

import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

os.environ.setdefault("SUPABASE_URL", "https://example.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("ENVIRONMENT", "test")

from tests.fakes import FakeSupabase  # noqa: E402

BUYER_ID = "buyer-1"
CATEGORY_LOCAL = "cat-plumbing"
CATEGORY_ONLINE = "cat-design"

# Pune (18.5204, 73.8567); Pimpri ~15 km away; Mumbai ~120 km away
PUNE = {"lat": 18.5204, "lng": 73.8567, "city": "Pune", "state": "Maharashtra"}
PIMPRI = {"lat": 18.6298, "lng": 73.7997, "city": "Pimpri", "state": "Maharashtra"}
MUMBAI = {"lat": 19.0760, "lng": 72.8777, "city": "Mumbai", "state": "Maharashtra"}


def provider_row(user_id, skills, location=None, full_name=None, is_blocked=False):
    return {
        "user_id": user_id,
        "skills": skills,
        "profiles": {
            "id": user_id,
            "full_name": full_name,
            "location": location,
            "is_blocked": is_blocked,
        },
    }


@pytest.fixture(autouse=True)
def clear_caches():
    from app.modules.location.service import clear_geocode_cache
    from app.modules.auth.service import clear_auth_cache
    clear_geocode_cache()
    clear_auth_cache()
    yield
    clear_geocode_cache()
    clear_auth_cache()


@pytest.fixture
def marketplace_tables():
    """Categories, providers and push tokens for a small Pune marketplace"""
    return {
        "service_categories": [
            {"id": CATEGORY_LOCAL, "name": "Plumbing", "max_distance_km": 30},
            {"id": CATEGORY_ONLINE, "name": "Graphic Design", "max_distance_km": None},
        ],
        "provider_profiles": [
            provider_row("prov-near", [CATEGORY_LOCAL], PIMPRI, "Asha"),
            provider_row("prov-far", [CATEGORY_LOCAL, CATEGORY_ONLINE], MUMBAI, "Ravi"),
            provider_row("prov-online", [CATEGORY_ONLINE], None, None),
            provider_row("prov-other", ["cat-cleaning"], PUNE, "Meera"),
            provider_row(BUYER_ID, [CATEGORY_LOCAL], PUNE, "Buyer Also Provides"),
        ],
        "push_tokens": [
            {"user_id": "prov-near", "token": "ExponentPushToken[near-ios]", "platform": "ios"},
            {"user_id": "prov-near", "token": "ExpoPushToken[near-android]", "platform": "android"},
            {"user_id": "prov-far", "token": "ExponentPushToken[far]", "platform": "ios"},
        ],
        "notifications": [],
    }


@pytest.fixture
def fake_supabase(marketplace_tables):
    return FakeSupabase(marketplace_tables)

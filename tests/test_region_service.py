import pytest
from fastapi import HTTPException

from app.modules.regions.schemas import RegionUpdate
from app.modules.regions.service import RegionService, escape_like
from tests.fakes import FakeSupabase

pytestmark = pytest.mark.unit


@pytest.fixture
def supabase():
    return FakeSupabase({
        "service_regions": [
            {"id": "r-pune", "name": "Pune", "city": "Pune", "lat": 18.5204, "lng": 73.8567,
             "radius_km": 30, "is_active": True},
            {"id": "r-nashik", "name": "Nashik", "city": "Nashik", "radius_km": 30, "is_active": False},
        ],
        "region_categories": [
            {"id": "rc-1", "region_id": "r-pune", "category_id": "cat-plumbing"},
            {"id": "rc-2", "region_id": "r-pune", "category_id": "cat-cleaning"},
            {"id": "rc-3", "region_id": "r-nashik", "category_id": "cat-plumbing"},
        ],
    })


@pytest.fixture
def service(supabase):
    return RegionService(supabase)


@pytest.mark.parametrize("value, expected", [
    ("Pune", "Pune"),
    ("%", "\\%"),
    ("Pim_ri", "Pim\\_ri"),
    ("a\\b", "a\\\\b"),
])
def test_escape_like(value, expected):
    assert escape_like(value) == expected


def test_list_regions_hides_inactive(service):
    assert [r.id for r in service.list_regions()] == ["r-pune"]
    assert [r.id for r in service.list_regions(include_inactive=True)] == ["r-nashik", "r-pune"]


def test_update_region(service):
    updated = service.update_region("r-nashik", RegionUpdate(is_active=True))
    assert updated.is_active is True
    assert updated.name == "Nashik"


def test_update_region_without_fields(service):
    with pytest.raises(HTTPException) as exc:
        service.update_region("r-nashik", RegionUpdate())
    assert exc.value.status_code == 400


def test_update_missing_region(service):
    with pytest.raises(HTTPException) as exc:
        service.update_region("r-404", RegionUpdate(name="Nowhere"))
    assert exc.value.status_code == 404


def test_delete_region(service, supabase):
    assert service.delete_region("r-nashik") is True
    assert service.delete_region("r-nashik") is False
    assert [r["id"] for r in supabase.rows("service_regions")] == ["r-pune"]


def test_region_categories(service):
    assert [c.category_id for c in service.get_region_categories("r-pune")] == ["cat-plumbing", "cat-cleaning"]
    assert service.get_region_categories("r-404") == []


def test_set_region_categories_replaces_and_dedups(service, supabase):
    result = service.set_region_categories("r-pune", ["cat-design", "cat-plumbing", "cat-design"])

    assert result == ["cat-design", "cat-plumbing"]
    pune = [r["category_id"] for r in supabase.rows("region_categories") if r["region_id"] == "r-pune"]
    assert pune == ["cat-design", "cat-plumbing"]
    nashik = [r["category_id"] for r in supabase.rows("region_categories") if r["region_id"] == "r-nashik"]
    assert nashik == ["cat-plumbing"]


def test_set_region_categories_to_empty(service, supabase):
    assert service.set_region_categories("r-pune", []) == []
    assert all(r["region_id"] != "r-pune" for r in supabase.rows("region_categories"))


@pytest.mark.parametrize("city", ["%", "P%", "Pun_", "_une"])
def test_ensure_region_matches_city_literally(service, city):
    region, created = service.ensure_region_for_city(city)
    assert created is True
    assert region.city == city
    assert region.is_active is False


def test_ensure_region_matches_existing_city_case_insensitively(service):
    region, created = service.ensure_region_for_city("PUNE")
    assert created is False
    assert region.id == "r-pune"

# Supabase tables: service_regions, region_categories
# Created by supabase-migration-v2.sql

"""
service_regions:
- id: uuid (primary key)
- name: text (not null), e.g. "Pune, Maharashtra"
- city: text (not null)
- state: text
- country: text (default 'India')
- lat, lng: numeric (region center)
- radius_km: integer (default 30)
- is_active: boolean (default true; auto-created regions start inactive)
- created_at: timestamptz

region_categories:
- region_id: uuid (references service_regions.id, on delete cascade)
- category_id: uuid (references service_categories.id, on delete cascade)
- PRIMARY KEY (region_id, category_id)

RLS: everyone reads active regions; only profiles.is_admin can write.
"""

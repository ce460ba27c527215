# Supabase table: service_requests
# This file documents the expected database schema

"""
service_requests:
- id: uuid (primary key)
- buyer_id: uuid (references profiles.id, not null)
- category_id: uuid (references service_categories.id, not null)
- title: text (not null)
- description: text (not null)
- budget_min, budget_max: numeric
- timeline: text
- deadline: timestamptz
- location: jsonb - {lat, lng, city, state, zip_code}
- attachments: text[] (default '{}')
- status: text ('open' | 'in_progress' | 'completed' | 'cancelled', default 'open')
- created_at, updated_at: timestamptz

service_categories:
- id: uuid, name: text (unique), description, icon
- max_distance_km: integer (null for online services)
"""

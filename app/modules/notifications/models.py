# Supabase tables: notifications, push_tokens
# Created by supabase-migration-v4-notifications.sql; accessed via the Supabase SDK.

"""
Expected Supabase table structure:

push_tokens:
- id: uuid (primary key)
- user_id: uuid (references profiles.id, on delete cascade)
- token: text (ExponentPushToken[...] / ExpoPushToken[...])
- platform: text ('ios' | 'android' | 'web' | 'unknown')
- created_at, updated_at: timestamptz
- UNIQUE (user_id, platform)

notifications:
- id: uuid (primary key)
- user_id: uuid (recipient, references profiles.id)
- type: text ('new_opportunity', 'new_proposal', 'proposal_accepted', ...)
- title: text
- body: text
- data: jsonb (e.g. {"type", "requestId", "screen"})
- read: boolean (default false)
- created_at: timestamptz

provider_profiles.skills holds category ids (text[]); service_categories.max_distance_km
is null for online services.
"""

# Supabase Auth
# Registration, login and JWT validation are delegated to Supabase Auth (auth.users).
# Role and admin/blocked flags live in public.profiles.

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text
- full_name: text
- avatar_url: text (nullable)
- phone: text (nullable)
- role: text ('buyer' | 'provider' | 'both')
- location: jsonb (nullable) - {lat, lng, city, state, zip_code, country}
- is_admin: boolean (default false)
- is_blocked: boolean (default false)
- notification_preferences: jsonb
- created_at: timestamptz

User metadata (full_name, role) is passed to sign_up and copied into
profiles by the handle_new_user trigger.
"""

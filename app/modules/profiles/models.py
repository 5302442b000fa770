# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- username: text (not null) - filled from the sign-up metadata by a trigger
- avatar_url: text (nullable)
- bike_model: text (nullable) - "<brand> <model>", e.g. "Ducati Monster 821"
- created_at: timestamp (default: now())
"""

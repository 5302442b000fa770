# Supabase table: rides; storage bucket: gpx-files
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

rides:
- id: uuid (primary key, default: gen_random_uuid())
- group_id: uuid (foreign key to groups.id, not null)
- created_by: uuid (foreign key to auth.users.id, not null)
- title: text (not null)
- description: text (nullable)
- date_time: timestamptz (not null)
- start_lat: double precision (not null, -90..90)
- start_lon: double precision (not null, -180..180)
- meeting_point_name: text (nullable)
- gpx_url: text (nullable) - public URL in the gpx-files bucket
- created_at: timestamp (default: now())

Storage bucket gpx-files (public):
- object key: {user_id}/{unix_millis}-{filename}
- public URL: {SUPABASE_URL}/storage/v1/object/public/gpx-files/{key}
"""

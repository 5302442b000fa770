# Supabase table: notifications
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key, default: gen_random_uuid())
- user_id: uuid (foreign key to auth.users.id, not null) - recipient
- type: text (not null) - values: new_member, new_ride, rsvp, ride_reminder
- title: text (not null)
- body: text (not null)
- link: text (nullable) - client path, e.g. /rides/{id}
- read: boolean (not null, default: false)
- created_at: timestamp (default: now())

Rows are inserted with the service role (fan-out writes on behalf of other
users) and only ever updated to read = true by their recipient.
Realtime is enabled on the table; INSERTs are also published in-process
through app.modules.notifications.events.
"""

# Supabase table: participants
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

participants:
- ride_id: uuid (foreign key to rides.id, not null, on delete cascade)
- user_id: uuid (foreign key to auth.users.id, not null)
- status: text (not null, default: 'attending') - values: attending, maybe, declined
- updated_at: timestamp (default: now())
- primary key (ride_id, user_id)

The primary key is the upsert target (on_conflict "ride_id,user_id"), so a
user never has more than one row per ride. No row means "no response".
"""

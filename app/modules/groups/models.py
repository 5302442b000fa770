# Supabase tables: groups, group_members
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

groups:
- id: uuid (primary key, default: gen_random_uuid())
- name: text (not null)
- invite_code: text (not null) - 6 characters [A-Z0-9]
- created_at: timestamp (default: now())
- unique constraint on (invite_code)

group_members:
- group_id: uuid (foreign key to groups.id, not null, on delete cascade)
- user_id: uuid (foreign key to auth.users.id, not null)
- role: text (not null, default: 'member') - values: admin, member
- joined_at: timestamp (default: now())
- primary key (group_id, user_id)

A duplicate (group_id, user_id) insert fails with SQLSTATE 23505, which the
service reports as AlreadyMemberError. Same code on groups.invite_code
triggers a retry with a fresh code.
"""

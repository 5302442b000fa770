# Supabase Auth
# This module uses Supabase's built-in authentication system.
# The only custom table tied to it is public.profiles, filled by a trigger.

"""
Supabase Auth provides:
- auth.sign_up() - Register new users
- auth.sign_in_with_password() - Authenticate users
- auth.get_user() - Get current user from JWT token
- auth.sign_out() - Logout users

On sign-up the database trigger handle_new_user() inserts
public.profiles(id, username) reading username from
raw_user_meta_data ->> 'username'.
"""

"""
Profiles Module

Personal details kept alongside a user account (phone, address, date of
birth and similar), editable by the user themselves or by an admin.

API Endpoints:
- GET /profile/{user_id} - Account plus profile
- PUT /profile/{user_id} - Update account names/email and create or update the profile
- DELETE /profile/{user_id} - Remove the profile (the account stays)
"""

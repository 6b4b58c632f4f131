# db/models.py
"""
Supabase does not require ORM model classes; rows travel as plain dicts.
Tables created in the Supabase dashboard (all with row level security):

Table: profiles
- id (uuid, PK, = auth.users.id)
- full_name, username, avatar_url, phone_number, email (text)
- role (text: 'user' | 'admin')
- created_at, updated_at (timestamptz)

Table: incomes
- id (int, PK)
- name, platform (text)
- payment (numeric), guest_count (int)
- class_type_id (int, FK → class_types.id, nullable)
- client_id (int, FK → clients.id, nullable)
- user_id (uuid, FK → profiles.id)
- created_at (timestamptz)

Table: expenses
- id (int, PK)
- name, category, who_paid, month (text)
- cost (numeric)
- client_id (int, FK → clients.id, nullable)
- user_id (uuid, FK → profiles.id)
- created_at (timestamptz)

Table: workshops (optional)
- id (int, PK), name (text), date (date), platform (text)
- capacity, attendance (int)
- class_type_id (int, FK → class_types.id)
- instructor_id (uuid, FK → profiles.id)

Table: clients
- id (int, PK)
- full_name, email, phone, company, address, notes (text)
- total_spent (numeric), total_sessions (int), is_active (bool)
- created_by (uuid, FK → profiles.id)
- created_at (timestamptz)

Table: documents
- id (int, PK)
- file_name, file_url, file_type, document_type, description (text)
- file_size (int)
- uploaded_by (uuid, FK → profiles.id)
- workshop_id, income_id, expense_id, client_id (int, nullable FKs)
- created_at (timestamptz)

Table: class_types
- id (int, PK), name (text, unique), description (text), created_at

Table: email_notifications (written by the send-notification-email function)
- id (int, PK), notification_type (text), record_id (text)
- user_id (uuid), subject (text)
- successful_sends, failed_sends (int), sent_at (timestamptz)
"""

from typing import Any, Dict, Optional

PROFILES = "profiles"
INCOMES = "incomes"
EXPENSES = "expenses"
WORKSHOPS = "workshops"
CLIENTS = "clients"
DOCUMENTS = "documents"
CLASS_TYPES = "class_types"
EMAIL_NOTIFICATIONS = "email_notifications"

DOCUMENTS_BUCKET = "documents"
AVATARS_BUCKET = "avatars"

ROLE_USER = "user"
ROLE_ADMIN = "admin"

# PostgREST code for ".single()" matching zero rows
NO_ROWS_CODE = "PGRST116"

EXPENSE_CATEGORIES = [
    "Recurring",
    "Shipping",
    "Miscellaneous",
    "Event & Consumables",
]

DOCUMENT_TYPES = ["receipt", "invoice", "contract", "photo", "other"]

PROFILE_FIELDS = ("full_name", "username", "avatar_url", "phone_number")
CLIENT_FIELDS = ("full_name", "email", "phone", "company", "address", "notes")


def placeholder_profile(
    user_id: str, email: Optional[str], user_metadata: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """Minimal render-able profile used when the real row cannot be loaded."""
    email = email or ""
    metadata = user_metadata or {}
    return {
        "id": user_id,
        "full_name": metadata.get("full_name") or "",
        "username": email.split("@")[0] if email else "user",
        "avatar_url": "",
        "phone_number": "",
        "role": ROLE_USER,
        "email": email,
    }

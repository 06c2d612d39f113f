"""
Profile rows: the role and active flag behind each account.
"""

from typing import List, Optional

from ..backend import BackendClient
from ..db.models import Profile, UserRole


async def fetch_profile(client: BackendClient, user_id: str) -> Optional[Profile]:
    rows = await client.table("profiles").select("*").eq("user_id", user_id).limit(1).execute()
    return Profile.model_validate(rows[0]) if rows else None


async def fetch_profiles(client: BackendClient) -> List[Profile]:
    rows = await client.table("profiles").select("*").order("created_at", ascending=False).execute()
    return [Profile.model_validate(row) for row in rows]


async def update_profile(client: BackendClient, profile_id: str, **values) -> Optional[Profile]:
    """Patch one profile. Enum values are sent as their string form."""
    payload = {k: (v.value if isinstance(v, UserRole) else v) for k, v in values.items()}
    rows = await client.table("profiles").update(payload).eq("id", profile_id).execute()
    return Profile.model_validate(rows[0]) if rows else None

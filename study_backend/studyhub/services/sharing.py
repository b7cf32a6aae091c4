import secrets
import string
from typing import Any, Dict, Mapping, Optional

PUBLIC_ID_LENGTH = 10

_PUBLIC_ID_ALPHABET = string.ascii_letters + string.digits + "_-"


# PUBLIC_INTERFACE
def generate_public_id(length: int = PUBLIC_ID_LENGTH) -> str:
    """Random URL-safe identifier used in public share links."""
    return "".join(secrets.choice(_PUBLIC_ID_ALPHABET) for _ in range(length))


# PUBLIC_INTERFACE
def visibility_updates(note: Mapping[str, Any], make_public: Optional[bool] = None) -> Dict[str, Any]:
    """
    Compute the fields to change when a note's visibility is set or toggled.

    make_public=None toggles. A note receives a public id the first time it is
    made public and keeps it afterwards, so sharing again reuses the same link.
    """
    is_public = (not note.get("is_public")) if make_public is None else bool(make_public)
    public_id = note.get("public_id")
    if is_public and not public_id:
        public_id = generate_public_id()
    return {"is_public": is_public, "public_id": public_id}

# roombook/middleware/auth.py
#
# Identity is established upstream (session layer); it forwards the
# normalized user as X-User-Id / X-User-Name. Nothing here decrypts cookies.

from dataclasses import dataclass

from fastapi import Request

from ..errors import AuthenticationError
from ..services.validation import is_valid_user_id, sanitize_text

USER_ID_HEADER = "X-User-Id"
USER_NAME_HEADER = "X-User-Name"


@dataclass(frozen=True)
class Identity:
    user_id: str
    name: str = ""


def get_current_user(request: Request) -> Identity:
    user_id = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not user_id:
        raise AuthenticationError()
    if not is_valid_user_id(user_id):
        raise AuthenticationError("Invalid user identity")

    name = sanitize_text(request.headers.get(USER_NAME_HEADER), limit=200)
    return Identity(user_id=user_id, name=name or user_id)

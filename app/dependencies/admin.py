from fastapi import Depends
from app.exceptions import Forbidden
from app.utils.token import Identity, get_current_identity

def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    # role comes from the verified token claim, never from the request body
    if not identity.is_admin:
        raise Forbidden("Admin access required")
    return identity

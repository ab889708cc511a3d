"""Current account endpoint."""

from fastapi import APIRouter, Depends

from freelancehub.core.auth import RequestUserContext, get_current_user_context

router = APIRouter(prefix="/me", tags=["me"])


@router.get("")
def get_me(context: RequestUserContext = Depends(get_current_user_context)) -> dict[str, object]:
    """Return the account resolved from the identity headers."""

    return {
        "id": str(context.user_id),
        "subject": context.subject,
        "email": context.email,
        "display_name": context.display_name,
        "status": context.status,
    }

"""
FastAPI dependencies for authentication, database sessions and workflow services.
"""

import uuid
from typing import Annotated, Optional

from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from reviewflow.config import Settings, get_settings
from reviewflow.database import get_db
from reviewflow.engines.queries.query_service import QueryService
from reviewflow.kernel.identity.jwt import verify_access_token
from reviewflow.kernel.identity.user_directory import UserDirectory
from reviewflow.kernel.models.user import User, UserRole
from reviewflow.kernel.permissions.assignment_registry import AssignmentRegistry
from reviewflow.logging_config import actor_id_var
from reviewflow.orchestration.notifications import BackgroundNotifier
from reviewflow.orchestration.workflow_engine import WorkflowEngine, WorkflowPolicy


# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]


async def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
) -> User:
    """Get current authenticated user or raise 401."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_access_token(credentials.credentials)
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        user_id = uuid.UUID(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    user = await UserDirectory(db).get_user(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    actor_id_var.set(str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> User:
    """Require the current user to be an admin."""
    if user.role != UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return user


AdminUser = Annotated[User, Depends(require_admin)]


def require_self_or_admin(user: User, user_id: uuid.UUID) -> None:
    """Allow users to read their own data; admins may read anyone's."""
    if user.role != UserRole.ADMIN and user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only access your own data",
        )


async def get_workflow_engine(
    db: DbSession,
    background_tasks: BackgroundTasks,
    settings: AppSettings,
) -> WorkflowEngine:
    """Workflow engine bound to this request's session and policy."""
    return WorkflowEngine(
        db,
        notifier=BackgroundNotifier(background_tasks),
        policy=WorkflowPolicy(require_feedback_on_reject=settings.require_feedback_on_reject),
    )


async def get_query_service(db: DbSession, settings: AppSettings) -> QueryService:
    return QueryService(db, max_page_size=settings.max_page_size)


async def get_assignment_registry(db: DbSession) -> AssignmentRegistry:
    return AssignmentRegistry(db)


Workflow = Annotated[WorkflowEngine, Depends(get_workflow_engine)]
Queries = Annotated[QueryService, Depends(get_query_service)]
Registry = Annotated[AssignmentRegistry, Depends(get_assignment_registry)]

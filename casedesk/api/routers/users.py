"""
API router for Users (staff acting on cases).
"""

from typing import cast
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from casedesk.api.dependencies import get_database_session
from casedesk.api.schemas import User, UserCreate
from casedesk.database.models import User as UserModel
from casedesk.logging_utils import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=User, status_code=201)
def create_user(
    user: UserCreate,
    db: Session = Depends(get_database_session),
) -> User:
    """Register a staff member."""
    db_user = UserModel(name=user.name, email=user.email, role=user.role)
    db.add(db_user)
    try:
        db.commit()
    except IntegrityError:
        # Email is the only unique user column
        db.rollback()
        logger.info(f"[USERS] Rejected duplicate email {user.email}")
        raise HTTPException(status_code=409, detail="A user with this email already exists")
    db.refresh(db_user)
    return cast(User, db_user)


@router.get("/{user_id}", response_model=User)
def get_user(
    user_id: UUID,
    db: Session = Depends(get_database_session),
) -> User:
    """Get a staff member by ID."""
    db_user = db.get(UserModel, user_id)
    if not db_user:
        raise HTTPException(status_code=404, detail="User not found")
    return cast(User, db_user)

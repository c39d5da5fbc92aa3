"""
Authentication Routes
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.orm import Session

from complygrid.auth import PasswordManager, jwt_manager
from complygrid.config import get_settings
from complygrid.database import User, get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_client_ip(request: Request) -> str:
    """Extract client IP address from request"""
    if "x-forwarded-for" in request.headers:
        return request.headers["x-forwarded-for"].split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: dict


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, http_request: Request, db: Session = Depends(get_db)):
    """Authenticate with email and password"""
    client_ip = get_client_ip(http_request)

    user = db.query(User).filter(User.email == request.email).first()
    if not user or not PasswordManager.verify_password(request.password, user.hashed_password):
        logger.warning(f"Failed login for {request.email} from {client_ip}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    if not user.is_active:
        logger.warning(f"Login attempt with inactive account {request.email} from {client_ip}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account is deactivated")

    user.last_login = datetime.utcnow()
    db.commit()

    user_data = {
        "sub": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "organization_id": user.organization_id,
    }
    logger.info(f"User {user.id} logged in from {client_ip}")

    return LoginResponse(
        access_token=jwt_manager.create_access_token(user_data),
        expires_in=get_settings().access_token_expire_minutes * 60,
        user=user_data,
    )

"""
Authentication for ComplyGrid
RS256 JWT access tokens and Argon2id password hashing
"""

import logging
import os
import secrets
import tempfile
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from .config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
    argon2__memory_cost=65536,  # 64MB
    argon2__time_cost=3,
    argon2__parallelism=1,
)

security = HTTPBearer()


class JWTManager:
    """JWT token management using RSA-2048 signatures"""

    def __init__(self, keys_dir: Optional[str] = None):
        self.private_key = None
        self.public_key = None
        self._load_or_generate_keys(keys_dir)

    def _load_or_generate_keys(self, keys_dir: Optional[str]):
        """Load existing RSA keys or generate a new pair"""
        if os.getenv("TESTING", "false").lower() == "true":
            keys_dir = tempfile.gettempdir()
            private_key_path = os.path.join(keys_dir, "complygrid_jwt_private_test.pem")
            public_key_path = os.path.join(keys_dir, "complygrid_jwt_public_test.pem")
        else:
            keys_dir = keys_dir or settings.jwt_keys_dir
            private_key_path = os.path.join(keys_dir, "jwt_private.pem")
            public_key_path = os.path.join(keys_dir, "jwt_public.pem")

        if os.path.exists(private_key_path) and os.path.exists(public_key_path):
            try:
                with open(private_key_path, "rb") as f:
                    self.private_key = serialization.load_pem_private_key(f.read(), password=None)
                with open(public_key_path, "rb") as f:
                    self.public_key = serialization.load_pem_public_key(f.read())
                logger.info("Loaded existing RSA keys for JWT signing")
                return
            except (OSError, ValueError) as e:
                logger.error(f"Error loading RSA keys: {e}")

        self._generate_keys(private_key_path, public_key_path)

    def _generate_keys(self, private_path: str, public_path: str):
        """Generate and persist an RSA-2048 key pair"""
        self.private_key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        self.public_key = self.private_key.public_key()

        try:
            os.makedirs(os.path.dirname(private_path), exist_ok=True)

            with open(private_path, "wb") as f:
                f.write(
                    self.private_key.private_bytes(
                        encoding=serialization.Encoding.PEM,
                        format=serialization.PrivateFormat.PKCS8,
                        encryption_algorithm=serialization.NoEncryption(),
                    )
                )

            with open(public_path, "wb") as f:
                f.write(
                    self.public_key.public_bytes(
                        encoding=serialization.Encoding.PEM,
                        format=serialization.PublicFormat.SubjectPublicKeyInfo,
                    )
                )

            os.chmod(private_path, 0o600)
            os.chmod(public_path, 0o644)
            logger.info("Generated new RSA keys for JWT signing")
        except OSError as e:
            # Keys stay in memory for this process
            logger.warning(f"Could not persist RSA keys: {e}")

    def create_access_token(self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """Create JWT access token"""
        to_encode = data.copy()
        expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
        to_encode.update(
            {
                "exp": expire,
                "iat": datetime.utcnow(),
                "jti": secrets.token_urlsafe(32),
            }
        )
        return jwt.encode(to_encode, self.private_key, algorithm=settings.algorithm)

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Verify JWT signature and expiry"""
        try:
            return jwt.decode(token, self.public_key, algorithms=[settings.algorithm])
        except jwt.ExpiredSignatureError:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Invalid token: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Could not validate credentials",
            )


# Global JWT manager instance
jwt_manager = JWTManager()


class PasswordManager:
    """Password hashing helpers"""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, Any]:
    """
    Resolve the authenticated user from the bearer token.

    Returns:
        Dict with id, email, role and organization_id (plus the raw claims)
    """
    payload = jwt_manager.verify_token(credentials.credentials)
    if payload.get("sub") is None or payload.get("organization_id") is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return {**payload, "id": payload["sub"]}

import datetime
import secrets
from typing import Optional

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError
from passlib.context import CryptContext


class SecurityService:
    def __init__(self, config):
        self.config = config
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

    def verify_password(self, plain_password, hashed_password):
        return self.pwd_context.verify(plain_password, hashed_password)

    def get_password_hash(self, password):
        return self.pwd_context.hash(password)

    def create_access_token(
        self, user_id: int, expires_delta: Optional[datetime.timedelta] = None
    ):
        expires_delta = expires_delta or datetime.timedelta(
            minutes=self.config.ACCESS_TOKEN_EXPIRE_MINUTES
        )
        expire = datetime.datetime.now(datetime.timezone.utc) + expires_delta
        to_encode = {
            "sub": str(user_id),
            "nonce": secrets.token_hex(8),
            "exp": expire,
        }
        encoded_jwt = jwt.encode(
            to_encode, self.config.SECRET_KEY, algorithm=self.config.ALGORITHM
        )
        return encoded_jwt, expire

    def decode_access_token(self, token: str) -> Optional[int]:
        try:
            payload = jwt.decode(
                token, self.config.SECRET_KEY, algorithms=[self.config.ALGORITHM]
            )
        except (ExpiredSignatureError, InvalidTokenError):
            return None
        subject = payload.get("sub")
        if subject is None or not str(subject).isdigit():
            return None
        return int(subject)

import os
from datetime import datetime, timezone, timedelta

from fastapi.requests import Request

import jwt
from jwt.exceptions import InvalidTokenError

from fastapi import HTTPException

from crossdict.logging_config import setup_logger
logger = setup_logger(__name__, "token.log")


class TokenHandler:
    """
    Bearer tokens issued by the sign-in service. The payload carries
    ``sub`` (numeric user id as string), ``role``, ``email`` and ``name``.
    """

    @staticmethod
    def generate_access_token(user_data: dict) -> str:
        try:
            encode = user_data.copy()
            encode.update(({"exp": datetime.now(timezone.utc) + timedelta(days=2)}))
            secret_key = os.getenv('JWT_SECRET_KEY')
            algorithm = os.getenv('JWT_ALGORITHM', 'HS256')
            access_token = jwt.encode(encode, secret_key, algorithm)
            return access_token
        except Exception as ex:
            logger.error(f"Failed to created new access token {ex}")
            raise HTTPException(status_code=500, detail=f"Failed to created new access token {ex}")

    @staticmethod
    def verify_access_token(req: Request) -> dict:
        header = req.headers.get('Authorization')
        if not header:
            raise HTTPException(status_code=401, detail='Unauthorized')

        parts = header.split(' ')
        access_token = parts[1] if len(parts) == 2 else None
        if not access_token:
            raise HTTPException(status_code=401, detail='Unauthorized')

        try:
            secret_key = os.getenv('JWT_SECRET_KEY')
            algorithm = os.getenv('JWT_ALGORITHM', 'HS256')
            payload = jwt.decode(access_token, secret_key, algorithms=[algorithm])
            return payload
        except InvalidTokenError as ex:
            logger.warning(f"Rejected access token: {ex}")
            raise HTTPException(status_code=401, detail=f'Authorization Error {ex}')

import logging
import datetime

import jwt
from flask import current_app, g

logger = logging.getLogger(__name__)


def get_jwt_token(user_data, expires_in=datetime.timedelta(hours=24)):
    """Generate JWT token with principal payload ({user_id, role, department_id})"""
    if not user_data:
        raise ValueError("User data must be provided to generate JWT token")

    expiration = datetime.datetime.now(datetime.timezone.utc) + expires_in
    payload = {"exp": expiration, **user_data}

    return jwt.encode(
        payload,
        current_app.config["SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )

def decode_jwt(token):
    """Decode and validate JWT token and store the principal in `g`."""
    try:
        payload = jwt.decode(
            token,
            current_app.config["SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except jwt.ExpiredSignatureError:
        logger.info("Token expired")
        return None
    except jwt.InvalidTokenError:
        logger.info("Invalid token provided")
        return None

    g.user = payload
    return payload

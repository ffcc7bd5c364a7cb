import jwt
import hashlib
import hmac
import os
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any

from excel_analytics import config
from excel_analytics.database.store import DocumentStore
from excel_analytics.errors import AuthorizationError, ValidationError
from excel_analytics.models.user import User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Cria um token JWT com os dados fornecidos

    Args:
        data: Dados a serem codificados no token
        expires_delta: Tempo de expiração do token

    Returns:
        Token JWT assinado
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Verifica e decodifica um token JWT

    Returns:
        Dados decodificados do token ou None se o token for inválido
    """
    try:
        return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.info(f"Token rejeitado: {e}")
        return None


def hash_password(password: str, salt: Optional[bytes] = None) -> str:
    """
    Cria um hash da senha (PBKDF2-SHA256 com salt aleatório)

    Returns:
        String "salt$hash" em hexadecimal
    """
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def check_password(password: str, stored: str) -> bool:
    try:
        salt_hex, _ = stored.split("$", 1)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    return hmac.compare_digest(hash_password(password, salt), stored)


def token_for(user: User) -> str:
    return create_access_token({"sub": user.email, "user_id": user.id})


def register_user(store: DocumentStore, name: str, email: str, password: str) -> User:
    """
    Registra um novo usuário

    O primeiro usuário cadastrado recebe privilégios de administrador.

    Raises:
        ValidationError: dados ausentes ou e-mail já cadastrado
    """
    email = (email or "").strip().lower()
    if not name or not email or not password:
        raise ValidationError("Name, email and password are required")
    if store.get_user_by_email(email) is not None:
        raise ValidationError("User already exists")

    is_first = store.count_users() == 0
    user = store.insert_user(User(
        name=name,
        email=email,
        password=hash_password(password),
        isAdmin=is_first,
    ))
    logger.info(f"Usuário {email} registrado (admin={is_first})")
    return user


def authenticate(store: DocumentStore, email: str, password: str) -> User:
    """
    Verifica as credenciais do usuário

    Raises:
        AuthorizationError: credenciais inválidas ou conta desativada
    """
    user = store.get_user_by_email((email or "").strip().lower())
    if user is None or not check_password(password or "", user.password):
        raise AuthorizationError("Invalid credentials")
    if not user.isActive:
        raise AuthorizationError("Account is disabled", status_code=403)
    return user


def user_from_token(store: DocumentStore, token: str) -> User:
    """
    Resolve o usuário dono do token

    Raises:
        AuthorizationError: token inválido/expirado ou usuário inexistente
    """
    payload = verify_token(token)
    if payload is None or not payload.get("user_id"):
        raise AuthorizationError("Token is not valid")
    user = store.get_user_by_id(str(payload["user_id"]))
    if user is None:
        raise AuthorizationError("User not found")
    if not user.isActive:
        raise AuthorizationError("Account is disabled", status_code=403)
    return user

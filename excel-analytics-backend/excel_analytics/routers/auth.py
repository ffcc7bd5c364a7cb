from fastapi import APIRouter, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional

from excel_analytics.database.store import DocumentStore, get_store
from excel_analytics.errors import AuthorizationError
from excel_analytics.models.user import User
from excel_analytics.schemas.auth import AuthResponse, LoginRequest, RegisterRequest
from excel_analytics.schemas.responses import UserOut
from excel_analytics.services import auth_service

router = APIRouter(prefix="/auth", tags=["Authentication"])

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    store: DocumentStore = Depends(get_store),
) -> User:
    """
    Valida o token e retorna o usuário atual
    """
    if credentials is None or not credentials.credentials:
        raise AuthorizationError("No token, authorization denied")
    return auth_service.user_from_token(store, credentials.credentials)


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """
    Permite acesso apenas a administradores
    """
    if not current_user.isAdmin:
        raise AuthorizationError("Access denied. Admin privileges required.", status_code=403)
    return current_user


@router.post("/register", response_model=AuthResponse)
async def register(register_data: RegisterRequest, store: DocumentStore = Depends(get_store)):
    """
    Endpoint para cadastro de usuários

    O primeiro usuário cadastrado torna-se administrador.
    """
    user = auth_service.register_user(
        store,
        name=register_data.name,
        email=register_data.email,
        password=register_data.password,
    )
    return {"token": auth_service.token_for(user), "user": user.public()}


@router.post("/login", response_model=AuthResponse)
async def login(login_data: LoginRequest, store: DocumentStore = Depends(get_store)):
    """
    Endpoint para login de usuário

    Returns:
        Token de acesso e dados do usuário
    """
    user = auth_service.authenticate(store, login_data.email, login_data.password)
    return {"token": auth_service.token_for(user), "user": user.public()}


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user.public()

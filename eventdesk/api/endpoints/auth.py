import logging
from typing import Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core import security
from ...core.exceptions import InvalidCredentials
from ...crud import user as user_crud
from ...models.user import User
from ...schemas.user import AuthResponse, MeResponse, UserCreate, UserLogin
from ...schemas.user import User as UserSchema
from ...schemas.user import UserDetail
from .. import deps

logger = logging.getLogger(__name__)

router = APIRouter()


def _issue_token(user: User) -> str:
    return security.create_access_token(
        user.id, username=user.username, email=user.email, role=user.role
    )


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
)
async def register_user(
    user_in: UserCreate,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    **Register a New Account**

    Creates a regular (non-admin) user and logs them in straight away.
    The password is hashed with bcrypt before storage and never logged.

    **Request Body:**
    - `username` (string): 3-50 characters, unique
    - `email` (string): valid email address, unique
    - `password` (string): at least 6 characters

    **Response:**
    - `token`: JWT bearer token valid for 24 hours
    - `user`: `{id, username, email, role}`

    **Errors:**
    - `400`: Missing fields, short password, or username/email already taken
    """
    user = await user_crud.create_user(
        db, username=user_in.username, email=user_in.email, password=user_in.password
    )
    return {
        "message": "User registered successfully",
        "token": _issue_token(user),
        "user": UserSchema.model_validate(user),
    }


@router.post("/login", response_model=AuthResponse, summary="User Login")
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(deps.get_db),
) -> Any:
    """
    **Authenticate and Get a Token**

    **Request Body:**
    - `username` (string)
    - `password` (string)

    **Example Request:**
    ```bash
    curl -X POST "/api/auth/login" \\
         -H "Content-Type: application/json" \\
         -d '{"username": "alice", "password": "s3cret!"}'
    ```

    **Errors:**
    - `400`: Missing fields
    - `401`: Unknown username or wrong password (no token is issued)
    """
    user = await user_crud.authenticate(
        db, username=credentials.username, password=credentials.password
    )
    if not user:
        logger.info("Failed login attempt for username %r", credentials.username)
        raise InvalidCredentials()

    return {
        "message": "Login successful",
        "token": _issue_token(user),
        "user": UserSchema.model_validate(user),
    }


@router.get("/me", response_model=MeResponse, summary="Current User")
async def read_me(
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Return the profile behind the bearer token.

    Logging out is client side: discard the token. Tokens are stateless and
    stay valid until they expire.
    """
    return {"user": UserDetail.model_validate(current_user)}

"""Account routes: register, login and the current user."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database.user_repository import UserRepository
from ...models.user import User, UserLogin, UserRegister
from ..dependencies import current_user, get_db
from ..envelope import success

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: UserRegister, session: Session = Depends(get_db)):
    auth = UserRepository(session).register(payload)
    return success(auth, message="User registered successfully")


@router.post("/login")
def login(payload: UserLogin, session: Session = Depends(get_db)):
    auth = UserRepository(session).login(payload)
    return success(auth, message="Login successful")


@router.get("/me")
def me(user: User = Depends(current_user)):
    return success(user)

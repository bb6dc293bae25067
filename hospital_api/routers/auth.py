from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, EmailStr, field_validator, model_validator
from sqlalchemy.orm import Session

from hospital_api.core.security import create_access_token, get_current_user
from hospital_api.database import get_db
from hospital_api.models.user import Role, User
from hospital_api.schemas import UserResponse
from hospital_api.services.accounts import (
    AccountCreate,
    ProfileUpdate,
    authenticate,
    change_password,
    check_password_strength,
    create_account,
    update_profile,
)

router = APIRouter(prefix="/api/auth", tags=["authentication"])


class RegisterRequest(AccountCreate):
    @model_validator(mode="after")
    def check_self_service_role(self):
        if self.role == Role.ADMIN:
            raise ValueError("Admin accounts can only be created by an administrator")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, value):
        return check_password_strength(value)


def token_response(user: User) -> dict:
    return {
        "success": True,
        "access_token": create_access_token(user),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(user_data: RegisterRequest, db: Session = Depends(get_db)):
    user = create_account(db, user_data)
    db.commit()
    db.refresh(user)
    return token_response(user)


@router.post("/login")
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(db, credentials.email, credentials.password)
    db.commit()
    db.refresh(user)
    return token_response(user)


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {"success": True, "data": UserResponse.model_validate(current_user)}


@router.put("/profile")
async def update_my_profile(
    changes: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    update_profile(db, current_user, changes)
    db.commit()
    db.refresh(current_user)
    return {
        "success": True,
        "message": "Profile updated successfully",
        "data": UserResponse.model_validate(current_user),
    }


@router.post("/change-password")
async def change_my_password(
    request: ChangePasswordRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    change_password(current_user, request.current_password, request.new_password)
    db.commit()
    return {"success": True, "message": "Password changed successfully"}

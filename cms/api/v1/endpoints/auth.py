from fastapi import APIRouter, HTTPException, status

from cms.core.dependencies import DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.admin import AdminResponse, LoginRequest, Token
from cms.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(form_data: LoginRequest, db: DBDependency):
    result = await AuthService(db).login(form_data.email, form_data.password)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token, admin = result
    return send_success(
        message="Login successful",
        data={
            **Token(access_token=access_token).model_dump(),
            "admin": AdminResponse.model_validate(admin).model_dump(mode="json"),
        },
    )


@router.get("/me")
async def read_admin_me(current_admin: AdminDependency):
    return send_success(
        data=AdminResponse.model_validate(current_admin).model_dump(mode="json")
    )

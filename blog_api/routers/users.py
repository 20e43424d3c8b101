from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from blog_api.database import get_db
from blog_api.dependencies import is_auth_protected
from blog_api.schemas import RoleUpdate
from blog_api.services import user_service

router = APIRouter(prefix="/users", tags=["users"])

# Declared before /{user_id} so "all" is never read as an id.
@router.get("/all")
async def list_users(
    user_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db)

@router.get("/{user_id}")
async def get_user(
    user_id: int,
    viewer_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.get_user(db, user_id)

@router.patch("/{user_id}/role")
async def set_role(
    user_id: int,
    data: RoleUpdate,
    viewer_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.set_role(db, user_id, data.role, viewer_id)

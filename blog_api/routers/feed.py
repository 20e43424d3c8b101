from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from blog_api.database import get_db
from blog_api.dependencies import PageParams, is_auth, is_auth_protected
from blog_api.schemas import PostInput
from blog_api.services import feed_service

router = APIRouter(prefix="/feed", tags=["feed"])

@router.get("/posts")
async def list_posts(
    paging: PageParams = Depends(),
    user_id: int | None = Depends(is_auth),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.list_posts(db, user_id, paging.page)

@router.get("/post-requests")
async def list_post_requests(
    paging: PageParams = Depends(),
    user_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.list_pending_requests(db, user_id, paging.page)

@router.post("/post-request/{post_id}")
async def allow_post_request(
    post_id: int,
    user_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.approve_post(db, post_id, user_id)

@router.post("/post", status_code=201)
async def create_post(
    data: PostInput,
    user_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.create_post(db, user_id, data)

@router.get("/post/{post_id}")
async def get_post(
    post_id: int,
    user_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.get_post(db, post_id)

@router.put("/post/{post_id}")
async def update_post(
    post_id: int,
    data: PostInput,
    user_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.update_post(db, post_id, user_id, data)

@router.delete("/post/{post_id}")
async def delete_post(
    post_id: int,
    user_id: int = Depends(is_auth_protected),
    db: AsyncSession = Depends(get_db),
):
    return await feed_service.delete_post(db, post_id, user_id)

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from blog_api.database import get_db
from blog_api.schemas import UserLogin, UserRegister
from blog_api.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])

@router.put("/register", status_code=201)
async def register(data: UserRegister, db: AsyncSession = Depends(get_db)):
    user_id = await auth_service.register(db, data)
    return {"message": "A user was created.", "userId": user_id}

@router.post("/login")
async def login(data: UserLogin, db: AsyncSession = Depends(get_db)):
    return await auth_service.login(db, data)

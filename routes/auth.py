from fastapi import APIRouter, status
from models.user import UserCreate, UserOut, UserLogin, TokenOut
from services.user_service import create_user, authenticate_user
from utils.logger import get_logger

logger = get_logger("AUTH_ROUTE")

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/signup", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def signup(user: UserCreate):
    logger.info(f"Attempting to sign up user with email: {user.email}")
    return await create_user(user)

@router.post("/login", response_model=TokenOut)
async def login(user: UserLogin):
    logger.info(f"Login attempt for: {user.email}")
    access_token = await authenticate_user(user.email, user.password)
    return {"access_token": access_token, "token_type": "bearer"}

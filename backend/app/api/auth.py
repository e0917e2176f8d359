"""
认证相关API
"""
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing import Optional
import secrets
import bcrypt
from datetime import datetime, timedelta

from app.core.config import TOKEN_TTL_HOURS
from app.db.database import get_db
from app.models.user import User

router = APIRouter(prefix="", tags=["认证"])  # 不使用/api前缀，因为前端直接调用/login
security = HTTPBearer(auto_error=False)

# 简单的token存储（进程内，重启后需重新登录）
tokens = {}


def get_password_hash(password: str) -> str:
    """生成密码哈希"""
    # bcrypt限制密码长度不能超过72字节，需要截断
    password_bytes = password.encode('utf-8')[:72]
    return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        return False


def issue_token(user: User) -> str:
    token = secrets.token_urlsafe(32)
    tokens[token] = {
        "user_id": user.id,
        "username": user.username,
        "expires_at": datetime.now() + timedelta(hours=TOKEN_TTL_HOURS),
    }
    return token


def lookup_token(token: Optional[str]) -> Optional[dict]:
    """返回有效token对应的信息，过期的token顺便删除"""
    if not token:
        return None
    data = tokens.get(token)
    if not data:
        return None
    if data["expires_at"] < datetime.now():
        tokens.pop(token, None)
        return None
    return data


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """根据Bearer token取得当前用户"""
    data = lookup_token(credentials.credentials if credentials else None)
    if not data:
        raise HTTPException(status_code=401, detail="未登录或登录已过期")
    user = db.query(User).filter(User.id == data["user_id"]).first()
    if not user or not user.is_active or user.deleted_at:
        raise HTTPException(status_code=401, detail="用户不存在或已停用")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "admin":
        raise HTTPException(status_code=403, detail="仅管理员可执行此操作")
    return current_user


def ensure_store_access(user: User, store_id: int) -> None:
    """前台只能操作所属门店的数据"""
    if user.role != "admin" and user.store_id is not None and user.store_id != store_id:
        raise HTTPException(status_code=403, detail="无权访问该门店")


class LoginRequest(BaseModel):
    """登录请求"""
    username: str = Field(..., description="用户名")
    password: str = Field(..., description="密码")


class LoginResponse(BaseModel):
    """登录响应"""
    accessToken: str = Field(..., description="访问令牌")
    username: str = Field(..., description="用户名")


class UserInfoResponse(BaseModel):
    """用户信息响应"""
    id: int
    username: str
    name: Optional[str] = None
    role: str
    store_id: Optional[int] = None
    permissions: list = []


@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, db: Session = Depends(get_db)):
    """用户登录"""
    user = db.query(User).filter(
        User.username == request.username,
        User.deleted_at.is_(None)
    ).first()
    if not user or not user.is_active or not verify_password(request.password, user.password_hash):
        raise HTTPException(status_code=401, detail="用户名或密码错误")

    return LoginResponse(
        accessToken=issue_token(user),
        username=user.username
    )


@router.post("/userInfo", response_model=UserInfoResponse)
def get_user_info(current_user: User = Depends(get_current_user)):
    """获取用户信息"""
    return UserInfoResponse(
        id=current_user.id,
        username=current_user.username,
        name=current_user.name,
        role=current_user.role,
        store_id=current_user.store_id,
        permissions=[current_user.role]
    )


@router.post("/logout")
def logout(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    """退出登录"""
    if credentials:
        tokens.pop(credentials.credentials, None)
    return {"message": "退出成功"}

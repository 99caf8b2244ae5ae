from datetime import datetime

from pydantic import BaseModel, ConfigDict

from microblog.schemas.enums import Role


class Principal(BaseModel):
    """Identity resolved for a single request, from a login or a decoded token"""
    model_config = ConfigDict(frozen=True)

    user_id: int
    username: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class AuthResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class MessageResponse(BaseModel):
    message: str

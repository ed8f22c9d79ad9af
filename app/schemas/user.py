from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional


def _check_name(v: Optional[str]) -> Optional[str]:
    if v is not None and not v.strip():
        raise ValueError("Name cannot be empty")
    return v.strip() if v else v


# ─── Request ──────────────────────────────────────────────────────────────────
class UserReplaceRequest(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def check_name(cls, v): return _check_name(v)


class UserUpdateRequest(BaseModel):
    name:  Optional[str] = None
    email: Optional[EmailStr] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v): return _check_name(v)

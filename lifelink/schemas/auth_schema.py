from typing import Annotated, Literal, Optional

from pydantic import EmailStr, StringConstraints

from lifelink.schemas.base_schema import BaseSchema
from lifelink.schemas.profile_schema import ProfileResponse


class UserRegister(BaseSchema):
    email: EmailStr
    password: Annotated[str, StringConstraints(min_length=8, max_length=128)]
    full_name: Optional[
        Annotated[str, StringConstraints(min_length=1, max_length=255)]
    ] = None
    # Platform admins are seeded from configuration, never self-registered
    role: Literal["individual", "hospital_admin"] = "individual"


class LoginSchema(BaseSchema):
    email: EmailStr
    password: str


class AuthResponse(BaseSchema):
    access_token: str
    token_type: str = "bearer"
    profile: ProfileResponse

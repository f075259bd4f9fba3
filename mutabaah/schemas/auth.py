from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from mutabaah.schemas.employees import normalize_email


class LoginIn(BaseModel):
    # NIP or email
    identifier: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterIn(BaseModel):
    email: str
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email_format(cls, v: str) -> str:
        return normalize_email(v)


class ChangePasswordIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    old_password: str = Field(alias="oldPassword", min_length=1)
    new_password: str = Field(alias="newPassword", min_length=8)

    @model_validator(mode="after")
    def _must_differ(self) -> ChangePasswordIn:
        if self.old_password == self.new_password:
            raise ValueError("newPassword must differ from oldPassword")
        return self

"""
Witter API — Field Validation Result Schemas

Returned by the /validate endpoints so the frontend can show per-field
messages before submitting the real sign-up or profile edit.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class FieldCheck(BaseModel):
    isValid: bool = True
    messages: List[str] = Field(default_factory=list)

    def fail(self, message: str) -> None:
        self.isValid = False
        self.messages.append(message)


class SignUpValidation(BaseModel):
    handle: FieldCheck
    username: FieldCheck
    password: FieldCheck
    email: FieldCheck


class UpdateProfileValidation(BaseModel):
    username: FieldCheck
    oldPassword: FieldCheck
    newPassword: Optional[FieldCheck] = Field(
        default=None,
        description="Omitted when no new password was supplied",
    )
    email: FieldCheck
    userDescription: FieldCheck
    profilePicture: FieldCheck
    bannerPicture: FieldCheck


class SignUpValidationResponse(BaseModel):
    result: SignUpValidation


class UpdateProfileValidationResponse(BaseModel):
    result: UpdateProfileValidation

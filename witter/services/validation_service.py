"""
Witter API — Field Validation Service
======================================

What:  Per-field checks for sign-up and profile-edit forms, plus the two
       composite checks served by the /validate endpoints.
Why:   The frontend asks for these before submitting, so each field reports
       every problem it has at once instead of failing on the first one.
How:   Each check returns a FieldCheck {isValid, messages}. A check never
       raises for bad input; only database failures propagate.
Who:   Called by routes/validate.py. The length rules for a new password are
       shared with UserService.update.

Rules at a glance:
    handle          8-20 chars, letters and digits only, not already taken
    username        8-20 chars, not blank, no leading whitespace
    password        8-20 chars, one capital, one digit, one special, no whitespace
    new password    password rules, and different from the old password
    email           name@domain.(com|edu|net), not owned by another account
    picture url     http(s)://... ending in .jpg/.jpeg/.png, no whitespace
    description     at most 250 chars, not blank, no leading whitespace
"""

import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from witter.models.user import User
from witter.schemas.validation import FieldCheck, SignUpValidation, UpdateProfileValidation
from witter.services.password_service import password_service


# ── Limits ────────────────────────────────────────────────────────────────
MIN_LENGTH = 8
MAX_LENGTH = 20
MAX_DESCRIPTION_LENGTH = 250

# ── Patterns ──────────────────────────────────────────────────────────────
HANDLE_PATTERN = re.compile(r"[A-Za-z0-9]+")
# At least one non-space character and no leading whitespace
VISIBLE_TEXT_PATTERN = re.compile(r"\S.*", re.DOTALL)
PASSWORD_PATTERN = re.compile(r"(?=.*[A-Z])(?=.*[0-9])(?=.*[^A-Za-z0-9\s])\S+")
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9]+@[a-zA-Z]+\.(com|edu|net)")
PICTURE_PATTERN = re.compile(r"https?://\S+\.(jpg|jpeg|png)", re.IGNORECASE)

# ── Messages ──────────────────────────────────────────────────────────────
HANDLE_LENGTH = "Handle must be between 8 - 20 characters long."
HANDLE_TAKEN = "Please select another handle. {handle} is already taken."
HANDLE_CHARACTERS = (
    "Handle must contain only lowercase letters, uppercase letters and numbers with no spaces."
)
USERNAME_LENGTH = "Username must be between 8 - 20 characters long."
USERNAME_BLANK = "Username cannot contain only empty spaces nor start with an empty space."
PASSWORD_LENGTH = "Password must be between 8 - 20 characters long."
PASSWORD_CHARACTERS = (
    "Password must contain at least 1 capital letter, 1 lowercase letter, 1 number and "
    "1 special character (e.g. !, #, *, etc.) and no blank spaces."
)
NEW_PASSWORD_LENGTH = "New password must be between 8 - 20 characters long."
NEW_PASSWORD_SAME = "New password cannot be the same as the old password."
NEW_PASSWORD_CHARACTERS = (
    "New password must contain at least 1 capital letter, 1 lowercase letter, 1 number, "
    "1 special character and no blank spaces."
)
OLD_PASSWORD_INVALID = "Invalid credentials. Please provide the proper password."
EMAIL_TAKEN_SIGN_UP = "Please select another email. {email} is already taken."
EMAIL_TAKEN_UPDATE = "Please select a different email. {email} is already taken."
EMAIL_INVALID = "Invalid email. Please provide a valid email."
PICTURE_INVALID = (
    "Invalid url. Please provide a valid url with proper image file extension "
    "(e.g. jpg, jpeg, png, etc.)."
)
DESCRIPTION_LENGTH = "User description cannot be greater than 250 characters in length."
DESCRIPTION_BLANK = (
    "User description cannot consist of just blank spaces, nor start with a blank space."
)


def is_valid_length(value: str, minimum: int = MIN_LENGTH, maximum: int = MAX_LENGTH) -> bool:
    return minimum <= len(value) <= maximum


class ValidationService:
    """Stateless field checks. Database-backed checks take the session first."""

    # ── Handle / Username ─────────────────────────────────────────────────

    async def check_handle(self, db: AsyncSession, handle: Optional[str]) -> FieldCheck:
        handle = handle or ""
        check = FieldCheck()
        if not is_valid_length(handle):
            check.fail(HANDLE_LENGTH)
        if handle and await db.get(User, handle) is not None:
            check.fail(HANDLE_TAKEN.format(handle=handle))
        if not HANDLE_PATTERN.fullmatch(handle):
            check.fail(HANDLE_CHARACTERS)
        return check

    def check_username(self, username: Optional[str]) -> FieldCheck:
        username = username or ""
        check = FieldCheck()
        if not is_valid_length(username):
            check.fail(USERNAME_LENGTH)
        if not VISIBLE_TEXT_PATTERN.fullmatch(username):
            check.fail(USERNAME_BLANK)
        return check

    # ── Passwords ─────────────────────────────────────────────────────────

    def check_password(self, password: Optional[str]) -> FieldCheck:
        password = password or ""
        check = FieldCheck()
        if not is_valid_length(password):
            check.fail(PASSWORD_LENGTH)
        if not PASSWORD_PATTERN.fullmatch(password):
            check.fail(PASSWORD_CHARACTERS)
        return check

    def check_new_password(
        self, old_password: Optional[str], new_password: Optional[str]
    ) -> FieldCheck:
        new_password = new_password or ""
        check = FieldCheck()
        if not is_valid_length(new_password):
            check.fail(NEW_PASSWORD_LENGTH)
        if new_password == (old_password or ""):
            check.fail(NEW_PASSWORD_SAME)
        if not PASSWORD_PATTERN.fullmatch(new_password):
            check.fail(NEW_PASSWORD_CHARACTERS)
        return check

    async def check_old_password(
        self, db: AsyncSession, handle: str, old_password: Optional[str]
    ) -> FieldCheck:
        check = FieldCheck()
        user = await db.get(User, handle)
        if user is None or not password_service.verify(old_password or "", user.password):
            check.fail(OLD_PASSWORD_INVALID)
        return check

    # ── Email ─────────────────────────────────────────────────────────────

    async def _email_owner(self, db: AsyncSession, email: str) -> Optional[str]:
        result = await db.execute(select(User.handle).where(User.email == email))
        return result.scalar_one_or_none()

    async def check_email_sign_up(self, db: AsyncSession, email: Optional[str]) -> FieldCheck:
        email = email or ""
        check = FieldCheck()
        if email and await self._email_owner(db, email) is not None:
            check.fail(EMAIL_TAKEN_SIGN_UP.format(email=email))
        if not EMAIL_PATTERN.fullmatch(email):
            check.fail(EMAIL_INVALID)
        return check

    async def check_email_update(
        self, db: AsyncSession, handle: str, email: Optional[str]
    ) -> FieldCheck:
        """Like sign-up, except the caller's own current email is accepted."""
        email = email or ""
        check = FieldCheck()
        owner = await self._email_owner(db, email) if email else None
        if owner is not None and owner != handle:
            check.fail(EMAIL_TAKEN_UPDATE.format(email=email))
        if not EMAIL_PATTERN.fullmatch(email):
            check.fail(EMAIL_INVALID)
        return check

    # ── Profile Text & Images ─────────────────────────────────────────────

    def check_picture(self, url: Optional[str]) -> FieldCheck:
        check = FieldCheck()
        if not PICTURE_PATTERN.fullmatch(url or ""):
            check.fail(PICTURE_INVALID)
        return check

    def check_user_description(self, description: Optional[str]) -> FieldCheck:
        description = description or ""
        check = FieldCheck()
        if len(description) > MAX_DESCRIPTION_LENGTH:
            check.fail(DESCRIPTION_LENGTH)
        if not VISIBLE_TEXT_PATTERN.fullmatch(description):
            check.fail(DESCRIPTION_BLANK)
        return check

    # ── Composite Checks ──────────────────────────────────────────────────

    async def is_valid_sign_up(
        self,
        db: AsyncSession,
        handle: Optional[str],
        username: Optional[str],
        password: Optional[str],
        email: Optional[str],
    ) -> SignUpValidation:
        return SignUpValidation(
            handle=await self.check_handle(db, handle),
            username=self.check_username(username),
            password=self.check_password(password),
            email=await self.check_email_sign_up(db, email),
        )

    async def is_valid_update_profile(
        self,
        db: AsyncSession,
        handle: str,
        username: Optional[str],
        old_password: Optional[str],
        new_password: Optional[str],
        email: Optional[str],
        user_description: Optional[str],
        profile_picture: Optional[str],
        banner_picture: Optional[str],
    ) -> UpdateProfileValidation:
        """newPassword is left out of the result when no new password was sent."""
        new_password_check = None
        if new_password:
            new_password_check = self.check_new_password(old_password, new_password)
        return UpdateProfileValidation(
            username=self.check_username(username),
            oldPassword=await self.check_old_password(db, handle, old_password),
            newPassword=new_password_check,
            email=await self.check_email_update(db, handle, email),
            userDescription=self.check_user_description(user_description),
            profilePicture=self.check_picture(profile_picture),
            bannerPicture=self.check_picture(banner_picture),
        )


validation_service = ValidationService()

"""User registration and credential checks for users and admins."""

import bcrypt
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Admin, User
from domain.errors import AlreadyRegistered, Unauthorized
from domain.validation import check_email, raise_if, require

MIN_PASSWORD_LENGTH = 6
BAD_CREDENTIALS = "メールアドレスまたはパスワードが間違っています"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


async def _find(session: AsyncSession, model, email: str):
    result = await session.execute(select(model).where(model.email == email))
    return result.scalar_one_or_none()


async def register(
    session: AsyncSession,
    email: str,
    password: str,
    password_confirmation: str | None,
    name: str,
) -> User:
    """Create a user account.

    Raises:
        ValidationError: blank fields, malformed email, short password or a
            confirmation that does not match.
        AlreadyRegistered: the email is taken (pre-check or unique index).
    """
    email = (email or "").strip().lower()
    messages = require({"email": email, "password": password, "name": name}, ["email", "password", "name"])
    check_email(email, messages)
    if password and len(password) < MIN_PASSWORD_LENGTH:
        messages.append(f"Password is too short (minimum is {MIN_PASSWORD_LENGTH} characters)")
    if password_confirmation is not None and password_confirmation != password:
        messages.append("Password confirmation doesn't match Password")
    raise_if(messages)

    if await _find(session, User, email) is not None:
        raise AlreadyRegistered()

    user = User(email=email, hashed_password=hash_password(password), name=name.strip())
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise AlreadyRegistered()
    logger.info("User {} registered ({})", user.id, email)
    return user


async def authenticate(session: AsyncSession, model, email: str, password: str):
    """Return the ``User``/``Admin`` matching the credentials or raise Unauthorized."""
    account = await _find(session, model, (email or "").strip().lower())
    if account is None or not password or not verify_password(password, account.hashed_password):
        logger.warning("Failed {} login for {}", model.__tablename__, email)
        raise Unauthorized(BAD_CREDENTIALS)
    return account


async def ensure_admin(session: AsyncSession, email: str, password: str, name: str = "Administrator") -> Admin:
    """Create the bootstrap admin if no admin uses ``email`` yet."""
    email = email.strip().lower()
    admin = await _find(session, Admin, email)
    if admin is None:
        admin = Admin(email=email, hashed_password=hash_password(password), name=name)
        session.add(admin)
        await session.commit()
        logger.info("Bootstrap admin {} created", email)
    return admin

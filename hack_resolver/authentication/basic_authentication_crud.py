import hashlib
import logging
import secrets
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from hack_resolver.models.basic_authentication_shemas import UserTable, Base
from hack_resolver.models.basic_authentication_models import UserModel
from hack_resolver.load_secrets import pepper_data

logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt + pepper_data).encode()).hexdigest()


class CreateAuthentication:

    @staticmethod
    async def create_table(engine) -> None:
        """Create table if not exists"""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except IntegrityError as e:
            logging.warning(f"Table already exists or other integrity error: {e}")

    @staticmethod
    async def create_user_data(username: str, password: str, identity: str, session: AsyncSession) -> UserModel:
        """Create user data to authenticate the user

        Args:
            username (str): name sent with basic credentials
            password (str): plain password, only its salted hash is stored
            identity (str): 32-byte key (hex) the user acts as
            session (AsyncSession): AsyncSession object to interact with database

        Returns:
            UserModel: stored user data
        """
        salt = secrets.token_hex(8)
        user = UserModel(
            username=username,
            hash_password=hash_password(password, salt),
            salt=salt,
            identity=identity,
        )
        async with session.begin():
            session.add(
                UserTable(
                    username=user.username,
                    hash_password=user.hash_password,
                    salt=user.salt,
                    identity=user.identity,
                )
            )
        return user


class ReadAuthentication:
    @staticmethod
    async def read_user_data(username: str, session: AsyncSession) -> UserModel | None:
        """Read user data to get salt and password hash

        Args:
            username (str): username of the user

        Returns:
            UserModel: username, password hash, salt and identity
        """
        stmt = select(UserTable).where(UserTable.username == username)
        result = await session.execute(stmt)
        result = result.scalars().first()
        if result is None:
            logging.info(f"User not found: {username}")
            return None
        return UserModel(
            username=result.username,
            hash_password=result.hash_password,
            salt=result.salt,
            identity=result.identity,
        )

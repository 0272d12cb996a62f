import argparse
from fastapi import Depends, status, HTTPException
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
import secrets
import asyncio

from hack_resolver.models.basic_authentication_models import UserModel
from hack_resolver.authentication.basic_authentication_crud import (
    CreateAuthentication,
    ReadAuthentication,
    hash_password,
)
from hack_resolver.create_sqlite_engine import engine

Session = async_sessionmaker(autocommit=False, class_=AsyncSession, bind=engine)
security = HTTPBasic()
create_auth = CreateAuthentication()
read_auth = ReadAuthentication()


class BasicAuthentication:
    def __init__(self):
        pass

    async def check_user_data(
        self, credentials: HTTPBasicCredentials = Depends(security)
    ) -> UserModel:
        """Check if the user data is valid. Called before every hack operation

        Args:
            credentials (HTTPBasicCredentials, optional): Defaults to Depends(security).

        Raises:
            HTTPException: The user is not found in the database
            HTTPException: The password is incorrect

        Returns:
            UserModel: Authenticated user, carrying the identity it acts as
        """
        async with Session() as session:
            user_data: UserModel = await read_auth.read_user_data(credentials.username, session)
        if user_data is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid username",
                headers={"WWW-Authenticate": "Basic"},
            )

        hashed_password = hash_password(credentials.password, user_data.salt)

        if not secrets.compare_digest(hashed_password, user_data.hash_password):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid password",
                headers={"WWW-Authenticate": "Basic"},
            )
        return user_data

    async def store_user_data(self, user_name: str, password: str, identity: str) -> UserModel:
        await create_auth.create_table(engine)
        async with Session() as session:
            return await create_auth.create_user_data(user_name, password, identity, session)

    async def read_user_data(self, user_name: str) -> UserModel | None:
        async with Session() as session:
            return await read_auth.read_user_data(user_name, session)


def get_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Basic Authentication")
    parser.add_argument("--username", type=str, help="Username", required=True)
    parser.add_argument("--password", type=str, help="Password", required=True)
    parser.add_argument(
        "--identity", type=str, help="32-byte key (hex) the user acts as", required=True
    )
    return parser


async def main(user_name: str, password: str, identity: str):
    basic_auth = BasicAuthentication()
    await basic_auth.store_user_data(user_name, password, identity)
    user_data = await basic_auth.read_user_data(user_name)
    print(user_data.username, user_data.identity, user_data.salt)


if __name__ == "__main__":
    parser = get_parser()
    args = parser.parse_args()
    asyncio.run(main(args.username, args.password, args.identity))

import pathlib

from sqlalchemy.ext.asyncio import create_async_engine

from hack_resolver.load_secrets import auth_db_path

if auth_db_path:
    file_path = pathlib.Path(auth_db_path)
else:
    file_path = pathlib.Path(__file__).parents[1]
    file_path /= "./hack_resolver/basic_authentication.sqlite3"
sqlite_url = f"sqlite+aiosqlite:///{file_path}"


engine = create_async_engine(url=sqlite_url, echo=False)

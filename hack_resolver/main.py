import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from hack_resolver.authentication.basic_authentication_crud import CreateAuthentication
from hack_resolver.create_postgres_engine import engine
from hack_resolver.create_sqlite_engine import engine as auth_engine
from hack_resolver.models.schemas import Base
from hack_resolver.routers import hack
from hack_resolver.services import oracle

logging.basicConfig(level=logging.INFO)

create_authentication = CreateAuthentication()


@asynccontextmanager
async def lifespan(app):
    """Create the hack session and user tables.
    This function is called to start the server.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await create_authentication.create_table(auth_engine)
    try:
        yield
    finally:
        await oracle.redis.aclose()
        await engine.dispose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(hack.hack_router)


# if __name__ == "__main__":
#     uvicorn.run(app, host="0.0.0.0", port=8080, reload=True)

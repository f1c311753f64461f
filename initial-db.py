import asyncio
from review_service import db
from review_service.core import config


async def main(settings):
    engine = db.init_db(settings)
    try:
        await db.recreate_table(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    settings = config.get_settings()
    print("Recreating rating table")
    asyncio.run(main(settings))

from tortoise import Tortoise, connections

from core.config import settings

MODEL_MODULES = [
    "models.user",
    "models.garden",
    "models.plant",
    "models.care",
    "models.usage",
]

TORTOISE_ORM = {
    "connections": {
        "default": settings.DATABASE_URL
    },
    "apps": {
        "models": {
            "models": [*MODEL_MODULES, "aerich.models"],
            "default_connection": "default",
        }
    },
    "use_tz": True,
    "timezone": "UTC",
}


async def init_db(generate_schemas: bool = False):
    await Tortoise.init(config=TORTOISE_ORM)
    # schema changes normally go through aerich migrations
    if generate_schemas:
        await Tortoise.generate_schemas()


async def close_db():
    await connections.close_all()

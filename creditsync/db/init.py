import certifi
from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from creditsync.core.config import Settings, get_settings
from creditsync.models.transaction import Transaction
from creditsync.models.user import User

DOCUMENT_MODELS = [
    User,
    Transaction,
]


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


async def init_db(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    kwargs = {}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
    client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
    database = client[settings.mongodb_db_name]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)

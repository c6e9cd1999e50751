"""MongoDB client (pymongo) shared by the repositories."""
import logging

import certifi
from pymongo import MongoClient
from pymongo.database import Database
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from noter.core.config import settings

_log = logging.getLogger("noter.mongo")

_client: MongoClient | None = None
_db: Database | None = None


def _client_kwargs(uri: str) -> dict:
    kwargs = dict(serverSelectionTimeoutMS=15000)
    if uri.startswith("mongodb+srv://"):
        # SRV already implies TLS; provide the certifi CA bundle
        kwargs["tlsCAFile"] = certifi.where()
    elif settings.mongo_tls:
        kwargs["tls"] = True
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsAllowInvalidCertificates"] = settings.mongo_tls_insecure
        kwargs["tlsAllowInvalidHostnames"] = settings.mongo_tls_allow_invalid_hostnames
    return kwargs


def init_mongo() -> None:
    """
    Create the client and check the connection (ping).
    Called once on FastAPI startup; a failure leaves the app up with no DB.
    """
    global _client, _db
    uri = settings.mongo_uri_resolved
    try:
        _client = MongoClient(uri, **_client_kwargs(uri))
        _client.admin.command("ping")
        _db = _client[settings.mongo_db_name]
        _log.info("Connected to MongoDB database '%s'", settings.mongo_db_name)
    except ServerSelectionTimeoutError as e:
        _log.warning("MongoDB not reachable (timeout): %s", e)
        _client = None
        _db = None
    except PyMongoError as e:
        _log.warning("Error connecting to MongoDB: %s", e)
        _client = None
        _db = None


def use_database(db: Database) -> None:
    """Bind an already-built database handle (embedding, scripts, tests)."""
    global _db
    _db = db


def close_mongo() -> None:
    global _client, _db
    if _client is not None:
        _client.close()
    _client = None
    _db = None


def get_db() -> Database:
    """
    Return the database handle.
    Use it from repositories, never from routers.
    """
    if _db is None:
        raise RuntimeError("MongoDB is not initialised. Try again later.")
    return _db


def db_ready() -> bool:
    return _db is not None

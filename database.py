"""
MongoDB connection.

The client is created at import when DATABASE_URL and DATABASE_NAME are set;
otherwise ``db`` stays ``None`` and ``get_db`` raises.
"""

import logging

from pymongo import MongoClient

from config import Config
from errors import DatabaseUnavailableError

logger = logging.getLogger(__name__)

client = None
db = None

if Config.database_configured():
    client = MongoClient(Config.DATABASE_URL, serverSelectionTimeoutMS=5000)
    db = client[Config.DATABASE_NAME]
else:
    logger.warning("DATABASE_URL/DATABASE_NAME not set; running without a database")


def get_db():
    if db is None:
        raise DatabaseUnavailableError()
    return db

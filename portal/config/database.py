import logging
from bson import ObjectId
from bson.errors import InvalidId
from flask import current_app
from pymongo import MongoClient

logger = logging.getLogger(__name__)


class Database:
    """MongoDB access for whichever app is handling the current request.

    Each app keeps its own client and database in `app.extensions`, so
    both services can be built in one process.
    """

    extension_key = 'mongo'

    def initialize(self, app):
        """Initialize database connection"""

        client = MongoClient(app.config['MONGODB_URI'])
        db = client[app.config['MONGODB_DB_NAME']]

        # Indexes for whichever collections this service uses
        for collection, keys, options in app.config.get('MONGODB_INDEXES', []):
            db[collection].create_index(keys, **options)

        app.extensions[self.extension_key] = {'client': client, 'db': db}
        logger.info("Connected to database %s", app.config['MONGODB_DB_NAME'])

    def get_db(self):
        """Get the current app's database instance"""
        state = current_app.extensions.get(self.extension_key)
        if state is None:
            raise RuntimeError("Database has not been initialized")
        return state['db']

    def close(self, app=None):
        """Close the app's database connection"""
        app = app or current_app
        state = app.extensions.pop(self.extension_key, None)
        if state:
            state['client'].close()


def to_object_id(value):
    """Parse an id from a request, raising ValueError when malformed"""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise ValueError(f"Invalid id: {value}")


# Global database instance
db_instance = Database()

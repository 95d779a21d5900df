import io

import mongomock
import pytest
from PIL import Image

from portal.app import create_family_app, create_news_app
from portal.config import database
from portal.config.database import db_instance

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'let-me-in'


@pytest.fixture(autouse=True)
def mongo(monkeypatch):
    """Swap the real MongoDB client for an in-memory one"""
    monkeypatch.setattr(database, 'MongoClient', mongomock.MongoClient)


@pytest.fixture
def news_app():
    app = create_news_app({
        'TESTING': True,
        'MONGODB_DB_NAME': 'news_test',
        'JWT_SECRET': 'test-secret',
        'SERPER_API_KEY': 'serper-test-key',
    })
    yield app
    db_instance.close(app)


@pytest.fixture
def news_client(news_app):
    return news_app.test_client()


@pytest.fixture
def family_app(tmp_path):
    app = create_family_app({
        'TESTING': True,
        'MONGODB_DB_NAME': 'family_test',
        'ADMIN_EMAIL': ADMIN_EMAIL,
        'ADMIN_PASSWORD': ADMIN_PASSWORD,
        'CLOUDINARY_CLOUD_NAME': 'demo-cloud',
        'CLOUDINARY_API_KEY': 'key',
        'CLOUDINARY_API_SECRET': 'secret',
        'CLOUDINARY_FOLDER': 'family-test',
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
        'BACKGROUND_SYNC': True,
    })
    yield app
    db_instance.close(app)


@pytest.fixture
def family_client(family_app):
    return family_app.test_client()


@pytest.fixture
def admin():
    return {'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD}


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), color=(200, 30, 30)).save(buffer, format='PNG')
    return buffer.getvalue()

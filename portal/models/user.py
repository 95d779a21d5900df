from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime, timezone
from portal.config.database import db_instance, to_object_id


class User(UserMixin):
    def __init__(self, email, password_hash=None, categories=None, _id=None, created_at=None):
        self.id = str(_id) if _id else None
        self.email = email
        self.password_hash = password_hash
        self.categories = list(categories or [])
        self.created_at = created_at or datetime.now(timezone.utc)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check if password is correct"""
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    def save(self):
        """Save user to database"""
        db = db_instance.get_db()
        user_data = {
            'email': self.email,
            'password_hash': self.password_hash,
            'categories': self.categories,
            'created_at': self.created_at
        }

        if self.id:
            db.users.update_one(
                {'_id': to_object_id(self.id)},
                {'$set': user_data}
            )
        else:
            result = db.users.insert_one(user_data)
            self.id = str(result.inserted_id)

        return self

    @staticmethod
    def _from_document(user_data):
        return User(
            email=user_data['email'],
            password_hash=user_data['password_hash'],
            categories=user_data.get('categories', []),
            _id=user_data['_id'],
            created_at=user_data.get('created_at')
        )

    @staticmethod
    def find_by_email(email):
        """Find user by email"""
        db = db_instance.get_db()
        user_data = db.users.find_one({'email': email})
        return User._from_document(user_data) if user_data else None

    @staticmethod
    def find_by_id(user_id):
        """Find user by ID, None when the id is unknown or malformed"""
        try:
            object_id = to_object_id(user_id)
        except ValueError:
            return None

        db = db_instance.get_db()
        user_data = db.users.find_one({'_id': object_id})
        return User._from_document(user_data) if user_data else None

import logging
from flask import Blueprint, request, jsonify
from pymongo.errors import DuplicateKeyError
from portal.models.user import User
from portal.utils.auth_middleware import validate_json_data, create_access_token

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/signup', methods=['POST'])
@validate_json_data(['email', 'password'])
def signup():
    """Register a new user with their news categories"""
    try:
        data = request.get_json()
        email = str(data['email']).lower().strip()
        password = str(data['password'])
        categories = data.get('categories') or []

        if not isinstance(categories, list) or \
                not all(isinstance(category, str) for category in categories):
            return jsonify({'error': 'Categories must be a list of strings'}), 400
        categories = [category.strip() for category in categories if category.strip()]

        if User.find_by_email(email):
            return jsonify({'error': 'User with this email already exists'}), 400

        user = User(email=email, categories=categories)
        user.set_password(password)
        user.save()

        logger.info("Registered user %s", user.id)
        return jsonify({'message': 'User registered successfully'}), 201

    except DuplicateKeyError:
        return jsonify({'error': 'User with this email already exists'}), 400
    except Exception as e:
        logger.exception("Signup failed")
        return jsonify({'error': f'Registration failed: {str(e)}'}), 500


@auth_bp.route('/login', methods=['POST'])
@validate_json_data(['email', 'password'])
def login():
    """Exchange email and password for a bearer token"""
    try:
        data = request.get_json()
        email = str(data['email']).lower().strip()
        password = str(data['password'])

        user = User.find_by_email(email)
        if not user or not user.check_password(password):
            return jsonify({'error': 'Invalid credentials'}), 401

        return jsonify({'token': create_access_token(user.id)}), 200

    except Exception as e:
        logger.exception("Login failed")
        return jsonify({'error': f'Login failed: {str(e)}'}), 500

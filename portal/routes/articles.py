from flask import Blueprint, current_app, jsonify
from flask_login import login_required, current_user
from portal.utils.search_client import SearchClient

articles_bp = Blueprint('articles', __name__)


def get_search_client():
    """Search client built from app config"""
    return SearchClient(
        api_key=current_app.config.get('SERPER_API_KEY'),
        base_url=current_app.config['SERPER_URL'],
        timeout=current_app.config['SERPER_TIMEOUT']
    )


@articles_bp.route('/articles', methods=['GET'])
@login_required
def get_articles():
    """Latest search results for each of the user's categories"""
    client = get_search_client()
    articles = client.fetch_articles(
        current_user.categories,
        num=current_app.config['SERPER_RESULTS_PER_CATEGORY']
    )
    return jsonify(articles), 200

import logging
from datetime import datetime, timezone

import requests

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_URL = 'https://google.serper.dev/search'


class SearchError(Exception):
    """Raised when the search API cannot serve a query"""


class SearchClient:
    def __init__(self, api_key, base_url=DEFAULT_SEARCH_URL, timeout=10.0, session=None):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.session = session or requests

    def search(self, query, num=5):
        """Run one web search and return its organic results"""
        if not self.api_key:
            raise SearchError('Search API key not configured')

        try:
            response = self.session.post(
                self.base_url,
                json={'q': query, 'num': num},
                headers={
                    'X-API-KEY': self.api_key,
                    'Content-Type': 'application/json'
                },
                timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise SearchError(f"Search request failed: {str(e)}") from e
        except ValueError as e:
            raise SearchError('Search API returned invalid JSON') from e

        organic = payload.get('organic') if isinstance(payload, dict) else None
        if not isinstance(organic, list):
            raise SearchError('Search API response has no organic results')
        return organic

    def fetch_articles(self, categories, num=5):
        """Collect articles for each category, skipping categories that fail"""
        articles = []
        for category in categories:
            try:
                results = self.search(category, num=num)
            except SearchError as e:
                logger.error("Error fetching articles for %s: %s", category, e)
                continue

            fetched_at = datetime.now(timezone.utc).isoformat()
            for item in results:
                if not isinstance(item, dict):
                    continue
                articles.append({
                    'title': item.get('title'),
                    'link': item.get('link'),
                    'category': category,
                    'publishedAt': fetched_at
                })

            logger.info("Fetched %d articles for %s", len(results), category)

        return articles

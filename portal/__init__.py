"""
Community portal backends.

Two independent Flask services built by factories in portal.app:
- create_news_app: user signup/login and per-category news search
- create_family_app: admin-gated family directory with photo upload
"""

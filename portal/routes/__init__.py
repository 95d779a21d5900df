"""
API Routes

This package contains Flask blueprints for:
- auth: News service signup and login
- articles: Per-category article search for logged-in readers
- family: Admin-gated family directory endpoints
"""

"""
Utility Functions

This package contains helper functions for:
- auth_middleware: Tokens, admin credentials and validation decorators
- search_client: Web search API client
- image_host: Cloudinary image upload and removal
- file_handler: Image upload storage and validation
- background: Fire-and-forget job runner
- logging_setup: Process-wide logging configuration
"""

"""
Configuration

This package contains:
- database: MongoDB connection shared by both services
"""

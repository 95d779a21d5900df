"""
Database Models

This package contains MongoDB model classes for:
- User: News reader accounts and their categories
- Family: Family directory records with embedded FamilyMember entries
"""

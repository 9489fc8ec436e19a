"""Presentation layer - HTTP concerns.

Structure:
- routes/: Default route table, query normalization and route attachment
- middleware/: Response middleware installed on the host application
- responses.py: JSON envelope builders
"""

"""
WebDoc Agent
============

An interactive browser agent that watches a web application's API traffic,
explores its visible navigation and writes Markdown and OpenAPI documentation.

Session: Open → Observe → Capture → Explore → Document
"""

__version__ = "0.1.0"

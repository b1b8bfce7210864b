"""
Changelog Generator API.

Provides a FastAPI backend that streams LLM-generated changelogs for
GitHub repositories and records user feedback on them.
"""

"""
AI Pull Request Analyzer

A backend service that takes a GitHub pull request URL, fetches the change,
asks an LLM for a review and returns the review as a validated, structured report.
"""

__version__ = "1.0.0"
__author__ = "AI PR Analyzer Team"

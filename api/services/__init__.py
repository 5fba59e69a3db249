"""
API Services Layer.

Database operations and workflow triggers behind the HTTP routes. Every
function takes the request's ``AsyncSession`` first and raises the domain
exceptions from ``core.exceptions``; collaborators (email, LLM) are passed in.
"""

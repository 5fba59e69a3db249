"""Hiring workflow rules: state machines, tokens and screening policy."""

"""Shared helpers: amounts, dates, logging and output sanitization."""

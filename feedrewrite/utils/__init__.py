"""Shared helpers: errors, logging, validation and HTTP."""

"""Shared utilities: exceptions, logging configuration, input validation."""

"""Rental listing ingestion service."""

"""Scan engine, aggregation, data models and error taxonomy."""

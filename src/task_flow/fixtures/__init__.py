"""Seed data for the in-memory backend."""

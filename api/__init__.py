"""Triage Assist HTTP API."""

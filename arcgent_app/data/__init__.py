"""Conversation data models and inbound payload parsing."""

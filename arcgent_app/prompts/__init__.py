"""Prompt generator instructions and supplementary capability detection."""

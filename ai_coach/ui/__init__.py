"""Widgets for the AI Coach application."""

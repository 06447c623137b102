"""Screens for the AI Coach application."""

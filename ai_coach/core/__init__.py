"""Core chat pipeline for the AI Coach."""

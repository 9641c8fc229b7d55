"""Prompt templates for the language collaborators."""

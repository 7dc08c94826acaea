"""Composer, fragment writer and nginx service collaborators."""

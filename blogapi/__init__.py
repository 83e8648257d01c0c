"""Awesome Blog API - authentication and request admission."""

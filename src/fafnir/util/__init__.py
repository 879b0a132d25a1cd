"""Shared helpers: logging setup and embed builders."""

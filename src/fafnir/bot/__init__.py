"""Discord-facing layer: shared bot state and the command and event cogs."""

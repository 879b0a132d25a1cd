"""Static CRUD helpers over the SQLite tables."""

"""SQLite schema for the local progress cache."""

SCHEMA = """
-- One JSON progress document per user
CREATE TABLE IF NOT EXISTS user_progress (
    user_id TEXT PRIMARY KEY,
    document TEXT NOT NULL,          -- ProgressDocument JSON (camelCase fields)
    updated_at TEXT,                 -- ISO timestamp of the last mutation
    saved_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_user_progress_updated ON user_progress(updated_at);
"""

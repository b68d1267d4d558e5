SCHEMA_SQL = r"""
-- Key-scoped record collections (one row per collection, JSON value)
CREATE TABLE IF NOT EXISTS records (
  key TEXT PRIMARY KEY,                  -- invoices_v2 / clients_v2 / stock_v2 / settings_v2
  value TEXT NOT NULL,                   -- whole collection, JSON encoded
  updated_at TEXT NOT NULL               -- ISO datetime of the last replace
);
"""

"""
Executions schema - document store for execution snapshots.

The full snapshot lives in a JSONB column; a handful of fields are lifted
into plain columns so listing and filtering never need to open the
document.

Tables:
- xray_executions: one row per saved execution

Indexes:
- execution_id is UNIQUE (duplicate saves are rejected)
- created_at DESC for newest-first listing
- status for filtering
- GIN on snapshot for ad-hoc document queries
"""

UP = """
-- Executions table: one row per saved execution snapshot
CREATE TABLE IF NOT EXISTS xray_executions (
    stored_id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    execution_id TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,

    -- Status
    status VARCHAR(20) NOT NULL DEFAULT 'in_progress',

    -- Timing (ms since epoch, as recorded by the trace)
    created_at BIGINT NOT NULL,
    completed_at BIGINT,
    duration_ms BIGINT,

    -- Summary
    total_steps INT,
    final_outcome TEXT,

    -- Full snapshot document
    snapshot JSONB NOT NULL,

    inserted_at TIMESTAMPTZ DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_xray_executions_created ON xray_executions(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_xray_executions_status ON xray_executions(status);

-- GIN index for snapshot JSONB queries
CREATE INDEX IF NOT EXISTS idx_xray_executions_snapshot ON xray_executions USING GIN (snapshot);
"""

DOWN = """
DROP INDEX IF EXISTS idx_xray_executions_snapshot;
DROP INDEX IF EXISTS idx_xray_executions_status;
DROP INDEX IF EXISTS idx_xray_executions_created;
DROP TABLE IF EXISTS xray_executions;
"""

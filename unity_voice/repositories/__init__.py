"""Session-scoped data access for progression records and tasks."""

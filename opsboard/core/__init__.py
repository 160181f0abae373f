"""opsboard core — archival, stores, and the status-update trigger."""

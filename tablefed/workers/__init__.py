"""Out-of-request entry points: schema sync notifications and decommission."""

"""Local session service and HTTP API for sheet documents."""

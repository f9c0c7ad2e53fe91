"""Runtime services: telemetry, deferred scheduling and the dispatch guard."""

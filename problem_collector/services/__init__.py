"""Collection services: status store, pacing, job strategies, runner, launcher."""

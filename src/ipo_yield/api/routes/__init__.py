"""Route modules for the estimator API."""

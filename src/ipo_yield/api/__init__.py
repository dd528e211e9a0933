"""HTTP API for the return estimator."""

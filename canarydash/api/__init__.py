"""HTTP access to the match-alerting backend."""

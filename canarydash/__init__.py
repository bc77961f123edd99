"""
canarydash - Live terminal dashboard for certificate-transparency match alerts

Polls a match-alerting backend for metrics, performance snapshots and recent
rule matches, and keeps a filtered, paginated view for an operator.
"""

__version__ = "0.3.0"

"""Observability: Prometheus metrics for the progress engine"""

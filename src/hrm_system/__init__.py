"""HRM System package.

This package is organized by feature modules (users, teams, requests,
assessments, ...) with a thin Flask JSON controller layer on top of
service/repository layers.
"""

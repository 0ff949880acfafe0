"""ruralwork: township administration back end.

This package is organized by feature modules (users, evaluations, votes,
leaves, attendance, teams, statistics) with a thin Flask controller layer and
service/repository layers underneath. Scoring and aggregation code is pure and
can be used without Flask or a database.
"""

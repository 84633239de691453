"""QR Attendance package.

This package is organized by feature modules (employees, rosters, attendance, reports, ...)
with a thin Flask controller layer and service/repository layers on top of a generic
record store.
"""

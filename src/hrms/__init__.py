"""HRMS package.

Organized by feature modules (attendance, breaks, leaves, shifts, payroll, ...)
with a thin Flask controller layer over service and repository layers.
"""

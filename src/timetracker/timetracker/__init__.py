"""Timetracker package.

Weekly timesheets and time-off requests for Canadian employers, organized by
feature modules (users, timesheets, vacations, ...) with a thin Flask
controller layer over service/repository layers.
"""

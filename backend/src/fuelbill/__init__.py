"""
Fuel bill batch generator.

Splits a total amount across a number of fuel bills, schedules each bill on
its own date, drives the third-party bill form to produce one PDF per bill
and merges the results into a single document.
"""

__version__ = "0.1.0"

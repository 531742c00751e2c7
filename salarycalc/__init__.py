"""Salary Calc - payroll computation and multi-employer allocation."""

__version__ = "0.3.0"

"""Loan calculator and payment tracker."""

__version__ = "1.0.0"

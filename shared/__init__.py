"""
Shared Kernel

This module contains base classes and utilities shared across all domain contexts:
booking wizard, payments and the referral ledger build on these primitives.
"""

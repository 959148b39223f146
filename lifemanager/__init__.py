"""
Life Manager - Core Package

The pure logic behind a personal life-management app: reading payment
screenshots and notifications into ledger entries, rolling recurring
transactions forward, and tracking savings plans.

DESIGN PRINCIPLES:
1. Rules first, AI second, human last
2. Absence is a value, not an exception
3. No silent guesses - ambiguity is reported
4. Every step must be auditable
5. Dates come in as arguments, never from the clock
"""

__version__ = "1.0.0"
__author__ = "Life Manager Team"

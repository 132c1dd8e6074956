# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for anything else. Only the console context can be overridden here.
"""

# Example: work on another club by default
# CLUB_ID = "riverside-fc"

# Example: record console actions as a real club user
# OPERATOR_ID = "u-ops"

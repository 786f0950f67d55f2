# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for everything else. Only CONSOLE_ENABLED is read from here.
"""

# Example: run headless (scheduler only, no console prompt)
# CONSOLE_ENABLED = False

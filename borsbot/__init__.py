"""
Merge gatekeeper bot: runs try builds of pull requests on request.
"""

__version__ = "0.1.0"

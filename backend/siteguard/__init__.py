"""
SiteGuard - website security posture scanner.

Runs a fixed battery of independent probes against one website and
combines their outcomes into a bounded 0-100 score with evidence.
"""

__version__ = "1.0.0"

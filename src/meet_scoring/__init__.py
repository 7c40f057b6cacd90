"""Meet Scoring MCP Server.

Score multi-team swim and dive meets: ranked event results, team standings
under roster-eligibility rules, and what-if analysis for test spots and
performance sensitivity.
"""

__version__ = "0.1.0"

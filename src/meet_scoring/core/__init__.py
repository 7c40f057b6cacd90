"""Core scoring logic: time codec, ranking, eligibility, aggregation, and what-if analysis.

This module is framework-agnostic. It has no dependency on SQLAlchemy, MCP,
or any server framework. The persistence adapter and the FastMCP server both
import from here.
"""

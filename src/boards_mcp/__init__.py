"""MCP server exposing Azure Boards work items and Confluence pages as tools.

Connectors translate tool calls into WIQL/CQL queries and REST calls, normalize
the responses into stable records and classify upstream failures.
"""

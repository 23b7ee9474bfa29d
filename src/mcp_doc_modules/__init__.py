"""Regroup documentation symbol trees by logical ``@module`` instead of by file."""

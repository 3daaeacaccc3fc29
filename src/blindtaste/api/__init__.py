"""API module for the tasting service.

api layer boundary:
- Validates inputs, authenticates admins and participants
- Reads/writes DB through the tasting domain and repo
- Serializes reports with reveal-gated redaction
- Forbidden: aggregation math
"""

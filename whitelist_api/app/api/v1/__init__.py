"""
Version 1 of the API.

This subpackage bundles the whitelist endpoints.  The public paths
(``/api/whitelist/...``) carry no version segment because existing
front‑end clients already depend on them.
"""

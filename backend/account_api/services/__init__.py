"""Service layer.

Packages
--------
- ``tokens``: refresh-token ledger operations (issue, rotate, revoke).
- ``auth``: registration, login, provider linking and session queries.
- ``password_reset``: single-use reset requests.
- ``_shared``: base service, domain errors and ports shared by the above.
"""

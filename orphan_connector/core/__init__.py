"""Core connector logic, independent of the HTTP command surface.

Module Structure:
    - identitynow/          : IdentityNow REST client (tokens, retry, pagination, resources)
    - models.py             : Typed account / source / identity snapshots
    - orphan_transformer.py : Account → host account/entitlement records
    - dispatcher.py         : Host lifecycle callbacks (OrphanAccountConnector)
"""

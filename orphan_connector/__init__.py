"""IdentityNow orphan account connector.

To use the command API:
    from orphan_connector.flask_app import create_app

To use the IdentityNow client library:
    from orphan_connector.core.identitynow import IdentityNowClient, AccountService

To use the lifecycle dispatcher:
    from orphan_connector.core.dispatcher import OrphanAccountConnector
"""
# Note: flask_app is not imported here so the CLI and client library
# can be used without loading Flask.

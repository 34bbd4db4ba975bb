"""Syncope authorisation sync package.

To use the Flask app:
    from syncope_sync.flask_app import create_app

To use the Syncope client:
    from syncope_sync.core.syncope import DirectoryClient, SyncopeClient

To use the provisioning service:
    from syncope_sync.core.provisioning_service import ProvisioningService
"""
# Note: flask_app is not imported here so the CLI can use the core
# without loading Flask.

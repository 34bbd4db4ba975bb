"""Core synchronisation logic.

Module Structure:
    - syncope/               : Syncope REST client and typed directory facade
    - state.py               : Durable key/value state (realm and role UUID caches)
    - accounts.py            : Local account and role entities
    - role_mapper.py         : Role <-> group mapping
    - user_mapper.py         : Account <-> site user reconciliation
    - global_roles.py        : Root realm (global) role management
    - results.py             : SyncAction / SyncOk / SyncFailed
    - provisioning_service.py: Orchestration of local mutations

These modules do not depend on Flask; import them explicitly:
    from syncope_sync.core.provisioning_service import ProvisioningService
    from syncope_sync.core.syncope import DirectoryClient
"""

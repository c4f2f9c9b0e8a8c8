from .credential_cache import CredentialCache

from .Manager import AuthConfig, AuthManager

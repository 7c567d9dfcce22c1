"""Vault Session Meta information.
   Vault Session gives every script execution context its own
   authenticated HashiCorp Vault client.
"""
__title__ = 'vault_session'
__description__ = (
   'Vault Session gives every script execution context its own '
   'authenticated HashiCorp Vault client.'
)
__version__ = '0.2.0'
__copyright__ = 'Copyright (c) 2026 Vault Session Authors'
__author__ = 'Vault Session Authors'
__author_email__ = 'maintainers@vault-session.dev'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/vault-session/vault-session'

"""
hsdp_api — typed client for the PKI, IAM roles and Cartel services.

The PKI side decodes every PEM artifact it receives (certificates, CRLs,
RSA/EC private keys) into immutable, fully validated objects.

Built on a Railway-Oriented Programming (ROP) Result type: operations return
Success or Failure with an ErrorCode instead of raising.
"""

__version__ = "0.1.0"

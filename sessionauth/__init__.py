"""Credential issuance, refresh session rotation and revocation."""

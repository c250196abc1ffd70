"""
Authentication module for the patient portal.

This module provides:
- Password login with case-insensitive Patient IDs
- Face login backed by a hosted face verification model
- Last-visit tracking on every successful login
- JWT bearer tokens for the profile endpoints
"""

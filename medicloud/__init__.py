"""
MediCloud patient portal backend.
"""

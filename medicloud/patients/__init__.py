"""
Patient records: models, storage, demo-data backfill and profile endpoints.
"""

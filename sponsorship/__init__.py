"""Sponsorship document analysis service: DB models, pipelines, API.

This package downloads uploaded sponsorship documents, extracts their
commercial terms, reconciles benefit phrases against the canonical
placement taxonomy and tracks each analysis as a background job.
"""

"""In-memory storefront backend for local development and tests"""

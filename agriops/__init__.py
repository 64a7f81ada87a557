"""
agriops - ticket triage backend for agricultural field operations
"""

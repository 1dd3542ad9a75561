"""Build Intelligence & Scoring Engine Core"""

"""
Nexus Library - installed game discovery, deduplication and metadata enrichment
"""

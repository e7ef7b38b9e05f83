"""Tagsmith -- release-level audio tagging, art and checksum publishing."""

"""
Integrity Index: conflict-of-interest audit for Canadian legislators.

Ingests financial disclosures, rosters, bills and committee memberships,
flags holdings that overlap with active committee oversight, and scores
each member with an integrity rank.
"""

__version__ = "1.0.0"

"""
Anonymous voting rules.

Voter ids are stored as HMAC-SHA256(salt, resident_id). The salt is global
rather than per poll: the same resident hashes identically across polls,
which is what lets a vote be changed by upsert. Tallies never reveal who
voted which way, but hashed ids are linkable across polls.
"""
import hashlib
import hmac
import math


def encrypt_resident_id(resident_id: str, salt: str) -> str:
    return hmac.new(salt.encode("utf-8"), resident_id.encode("utf-8"), hashlib.sha256).hexdigest()


def poll_passes(yays: int, nays: int, min_votes: int) -> bool:
    """At least min_votes yays, and strictly more yays than nays."""
    return yays >= min_votes and yays > nays


def proposal_min_votes(resident_count: int, pct: float, floor_votes: int) -> int:
    """
    Yes votes needed for a proposal in a house of resident_count.

    Example:
        proposal_min_votes(4, 0.4, 2)  -> 2
        proposal_min_votes(10, 0.4, 2) -> 4
    """
    return max(floor_votes, math.ceil(round(resident_count * pct, 9)))

"""
Tests for anonymous voting rules
"""
from chorewheel.domain.voting import encrypt_resident_id, poll_passes, proposal_min_votes


def test_encrypted_id_is_stable_and_opaque():
    first = encrypt_resident_id("U123", "salt")

    assert first == encrypt_resident_id("U123", "salt")
    assert "U123" not in first
    assert len(first) == 64


def test_encrypted_id_depends_on_salt_and_resident():
    assert encrypt_resident_id("U123", "salt") != encrypt_resident_id("U123", "pepper")
    assert encrypt_resident_id("U123", "salt") != encrypt_resident_id("U124", "salt")


def test_two_yays_pass():
    assert poll_passes(2, 0, 2) is True


def test_one_yay_fails():
    assert poll_passes(1, 0, 2) is False


def test_tie_fails():
    assert poll_passes(2, 2, 2) is False


def test_majority_above_minimum_passes():
    assert poll_passes(3, 2, 2) is True


def test_proposal_min_votes_scales_with_house():
    assert proposal_min_votes(4, 0.4, 2) == 2
    assert proposal_min_votes(6, 0.4, 2) == 3
    assert proposal_min_votes(10, 0.4, 2) == 4


def test_proposal_min_votes_has_floor():
    assert proposal_min_votes(1, 0.4, 2) == 2
    assert proposal_min_votes(0, 0.4, 2) == 2
